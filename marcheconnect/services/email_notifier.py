"""
Email notifications for vendors and the organizer.

Sends plain-text emails over SMTP:
- acceptance (with the link to the details form)
- rejection (with the committee's justification)
- final confirmation (details form received, amount due)
- new application alert (organizer only)

Delivery is best-effort: failures are logged and returned as a failed
NotificationResult, never raised. smtplib is blocking, so each send runs
in a worker thread.
"""
import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

from marcheconnect.config import Settings
from marcheconnect.core.interfaces import INotifier, NotificationResult
from marcheconnect.domain.entities import Application, DetailedInfo, PriceConfig
from marcheconnect.domain.pricing import compute_total

logger = logging.getLogger(__name__)


def _yes_no(value: bool) -> str:
    return "Oui" if value else "Non"


def render_acceptance(
    application: Application,
    message: Optional[str],
    config: PriceConfig,
    details_url: str
) -> tuple:
    """Subject and body of the acceptance email"""
    subject = f"Votre candidature pour le Marché de Noël {config.market_year} a été retenue !"

    organizer_note = ""
    if message:
        organizer_note = (
            "Message de l'organisateur :\n"
            "---------------------------\n"
            f"{message}\n"
            "---------------------------\n\n"
        )

    body = (
        f"Bonjour {application.full_name},\n\n"
        f"Nous avons le plaisir de vous informer que votre candidature pour le "
        f"Marché de Noël {config.market_year} a été acceptée par notre comité !\n\n"
        f"{organizer_note}"
        "Pour finaliser votre inscription, merci de compléter votre dossier technique "
        "(électricité, repas, assurance) en suivant le lien ci-dessous :\n\n"
        f"Lien vers votre dossier : {details_url}\n\n"
        "Une fois ce dossier complété, votre emplacement sera définitivement réservé "
        "à réception de votre règlement.\n\n"
        "À très bientôt !\n"
        "Le comité d'organisation\n"
    )
    return subject, body


def render_rejection(application: Application, justification: str, config: PriceConfig) -> tuple:
    """Subject and body of the rejection email"""
    subject = f"Votre candidature pour le Marché de Noël {config.market_year}"
    body = (
        f"{justification}\n\n"
        "--\n"
        f"Candidature : {application.company_name}\n"
    )
    return subject, body


def render_final_confirmation(
    application: Application,
    detailed_info: DetailedInfo,
    config: PriceConfig
) -> tuple:
    """Subject and body of the final confirmation email (details form received)"""
    subject = f"Dossier reçu - Marché de Noël {config.market_year}"

    tombola = _yes_no(detailed_info.tombola_lot)
    if detailed_info.tombola_lot and detailed_info.tombola_lot_description:
        tombola += f" ({detailed_info.tombola_lot_description})"

    body = (
        f"Bonjour {application.full_name},\n\n"
        f"Nous avons bien reçu votre dossier de finalisation pour {application.company_name}.\n\n"
        "Récapitulatif :\n"
        "---------------\n"
        f"Tables : {application.requested_tables.value}\n"
        f"Électricité : {_yes_no(detailed_info.needs_electricity)}\n"
        f"Grille d'exposition : {_yes_no(detailed_info.needs_grid)}\n"
        f"Plateaux repas du dimanche : {detailed_info.sunday_lunch_count}\n"
        f"Lot pour la tombola : {tombola}\n"
        f"Assurance : {detailed_info.insurance_company} "
        f"(police n° {detailed_info.insurance_policy_number})\n\n"
        f"Montant à régler : {compute_total(application, config)} €\n\n"
        "Votre emplacement sera définitivement confirmé à réception de votre règlement.\n\n"
        "Le comité d'organisation\n"
    )
    return subject, body


def render_new_application(application: Application, config: PriceConfig) -> tuple:
    """Subject and body of the organizer alert for a new application"""
    subject = f"Nouvelle candidature : {application.company_name}"
    location = application.city or "Non renseignée"
    if application.postal_code:
        location += f" ({application.postal_code})"

    body = (
        "Bonjour,\n\n"
        f"Une nouvelle candidature vient d'être déposée pour le Marché de Noël {config.market_year}.\n\n"
        "Détails de l'exposant :\n"
        "-----------------------\n"
        f"Enseigne : {application.company_name}\n"
        f"Contact : {application.full_name}\n"
        f"Ville : {location}\n"
        f"Email : {application.email}\n"
        f"Téléphone : {application.phone}\n\n"
        "Description du stand :\n"
        f"{application.product_description}\n\n"
        f"Tables demandées : {application.requested_tables.value}\n"
        f"Statut pro : {'Déclaré' if application.is_registered else 'Particulier'}\n"
        f"Site/Réseaux : {application.website_url or 'Non renseigné'}\n\n"
        "Le dossier complet est consultable sur le tableau de bord administrateur.\n"
    )
    return subject, body


class SmtpNotifier(INotifier):
    """
    SMTP implementation of INotifier.

    Usage:
        notifier = SmtpNotifier(settings)
        result = await notifier.send_acceptance(application, "Bienvenue !", config)
        if not result.success:
            ...  # status already changed, offer a re-send
    """

    def __init__(self, settings: Settings, logger_instance: logging.Logger = logger):
        self._settings = settings
        self._logger = logger_instance

    def details_url(self, application: Application) -> str:
        """Link to the vendor's details form"""
        return f"{self._settings.public_base_url.rstrip('/')}/details/{application.id}"

    def organizer_address(self, config: PriceConfig) -> Optional[str]:
        """Edition inbox, falling back to the configured organizer address"""
        return config.notification_email or self._settings.organizer_email or None

    async def send_acceptance(
        self,
        application: Application,
        message: Optional[str],
        config: PriceConfig
    ) -> NotificationResult:
        subject, body = render_acceptance(application, message, config, self.details_url(application))
        email = self._build_message(application.email, subject, body, cc=self.organizer_address(config))
        return await self._deliver(email, application, "acceptance")

    async def send_rejection(
        self,
        application: Application,
        justification: str,
        config: PriceConfig
    ) -> NotificationResult:
        subject, body = render_rejection(application, justification, config)
        email = self._build_message(application.email, subject, body)
        return await self._deliver(email, application, "rejection")

    async def send_final_confirmation(
        self,
        application: Application,
        detailed_info: DetailedInfo,
        config: PriceConfig
    ) -> NotificationResult:
        subject, body = render_final_confirmation(application, detailed_info, config)
        email = self._build_message(application.email, subject, body, cc=self.organizer_address(config))
        return await self._deliver(email, application, "final confirmation")

    async def send_new_application(
        self,
        application: Application,
        config: PriceConfig
    ) -> NotificationResult:
        recipient = self.organizer_address(config)
        if not recipient:
            self._logger.warning("⚠️ No organizer email configured - new application alert not sent")
            return NotificationResult.failed("No organizer email configured")

        subject, body = render_new_application(application, config)
        email = self._build_message(recipient, subject, body, reply_to=application.email)
        return await self._deliver(email, application, "new application")

    def _build_message(
        self,
        to: str,
        subject: str,
        body: str,
        cc: Optional[str] = None,
        reply_to: Optional[str] = None
    ) -> EmailMessage:
        email = EmailMessage()
        email["From"] = formataddr((self._settings.smtp_sender_name, self._settings.smtp_user))
        email["To"] = to
        if cc and cc != to:
            email["Cc"] = cc
        if reply_to:
            email["Reply-To"] = reply_to
        email["Subject"] = subject
        email.set_content(body)
        return email

    async def _deliver(self, email: EmailMessage, application: Application, kind: str) -> NotificationResult:
        """Send in a worker thread; map transport errors to a failed result"""
        if not self._settings.smtp_host:
            self._logger.warning(f"⚠️ SMTP not configured - {kind} email for {application.id} not sent")
            return NotificationResult.failed("SMTP is not configured")

        try:
            await asyncio.to_thread(self._send_sync, email)
        except (smtplib.SMTPException, OSError) as e:
            self._logger.warning(
                f"⚠️ Failed to send {kind} email - "
                f"application: {application.id}, error: {e}"
            )
            return NotificationResult.failed(f"Failed to send {kind} email: {e}")

        self._logger.info(f"✅ Sent {kind} email - application: {application.id}")
        return NotificationResult.ok()

    def _send_sync(self, email: EmailMessage) -> None:
        settings = self._settings
        if settings.smtp_use_ssl:
            smtp = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout)
        else:
            smtp = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.smtp_timeout)

        with smtp:
            if not settings.smtp_use_ssl:
                smtp.starttls()
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(email)
