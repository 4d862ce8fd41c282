"""
Rejection justification drafting.

Builds a polite, personalized rejection message from the reasons picked by
the committee. The text only pre-fills the admin's rejection dialog; the
admin can edit it before rejecting.
"""
import logging
from typing import List

from marcheconnect.core.interfaces import IJustificationGenerator

logger = logging.getLogger(__name__)


# Reasons that leave the door open for a future edition
REAPPLY_HINT_REASONS = {
    "not enough space",
    "manque de place",
    "product category already saturated",
    "catégorie de produits déjà représentée",
}


class TemplateJustificationGenerator(IJustificationGenerator):
    """
    Deterministic justification generator.

    Message structure:
    1. Greeting with the applicant's name
    2. Thanks, and the decision stated politely
    3. The reasons, one per line
    4. An invitation to apply again when the reasons allow it
    5. Closing
    """

    def __init__(self, market_name: str = "Marché de Noël"):
        self._market_name = market_name

    async def generate(self, applicant_name: str, summary: str, reasons: List[str]) -> str:
        """
        Draft a rejection justification.

        Args:
            applicant_name: Name used in the greeting
            summary: Product description of the application
            reasons: At least one rejection reason

        Raises:
            ValueError: If no reason is given
        """
        cleaned = [reason.strip() for reason in reasons if reason and reason.strip()]
        if not cleaned:
            raise ValueError("At least one rejection reason must be provided.")

        name = applicant_name.strip() or "Madame, Monsieur"
        lines = [
            f"Bonjour {name},",
            "",
            f"Nous vous remercions pour l'intérêt que vous portez au {self._market_name} "
            f"et pour le temps consacré à votre candidature.",
        ]
        if summary and summary.strip():
            lines.append(
                f"Le comité a examiné avec attention votre proposition ({summary.strip()})."
            )
        lines += [
            "Nous sommes malheureusement au regret de ne pas pouvoir la retenir pour cette édition, "
            "pour les raisons suivantes :",
            "",
        ]
        lines += [f"- {reason}" for reason in cleaned]
        lines.append("")

        if any(reason.lower() in REAPPLY_HINT_REASONS for reason in cleaned):
            lines += [
                "Cette décision ne remet pas en cause la qualité de votre travail : "
                "nous serions heureux de recevoir votre candidature l'année prochaine.",
                "",
            ]

        lines += [
            "Nous vous souhaitons une belle continuation et de très belles fêtes de fin d'année.",
            "",
            "Bien cordialement,",
            "Le comité d'organisation",
        ]

        logger.info(f"📝 Drafted rejection justification ({len(cleaned)} reason(s))")
        return "\n".join(lines)
