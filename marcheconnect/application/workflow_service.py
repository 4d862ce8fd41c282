"""
Application Workflow Service - orchestration of the vendor application lifecycle.

This service provides a unified interface for:
- Public submission of new applications
- Committee decisions (accept / reject / validate)
- Details form submission
- Re-sending the notification of the current status
- Dashboard statistics for an edition

The state machine (marcheconnect.domain.lifecycle) decides; this service
persists, commits, then dispatches the resulting notification intent.
A notification failure never undoes the committed status change: it is
reported on the outcome so the admin can re-send it.
"""

from dataclasses import dataclass
from typing import List, Optional
import logging

from marcheconnect.core.interfaces import ApplicationFilter, INotifier, NotificationResult
from marcheconnect.domain import lifecycle
from marcheconnect.domain.entities import (
    Application,
    ApplicationNotFoundError,
    DetailedInfo,
    InvalidInput,
    InvalidTransition,
    PriceConfig,
)
from marcheconnect.domain.lifecycle import NotificationIntent, NotificationKind, Transition
from marcheconnect.domain.pricing import resolve_price_config
from marcheconnect.domain.stats import DashboardStats, aggregate
from marcheconnect.domain.unit_of_work import AbstractUnitOfWork
from marcheconnect.domain.value_objects import ApplicationId, ApplicationStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionOutcome:
    """
    Result of an admin or vendor action.

    status_changed and notification_sent are reported separately: the
    transition is complete once committed, the notification is best-effort.
    """

    application: Application
    from_status: ApplicationStatus
    config: PriceConfig  # Edition the application is billed under
    notification: Optional[NotificationResult] = None

    @property
    def to_status(self) -> ApplicationStatus:
        return self.application.status

    @property
    def status_changed(self) -> bool:
        return self.from_status != self.to_status

    @property
    def notification_sent(self) -> Optional[bool]:
        """None when the transition has no notification"""
        if self.notification is None:
            return None
        return self.notification.success


class ApplicationWorkflowService:
    """
    Application service for the vendor application lifecycle.

    Orchestrates:
    - Domain logic (lifecycle decisions, price configuration selection)
    - Infrastructure (persistence through the Unit of Work, notifications)

    Usage:
        service = ApplicationWorkflowService(notifier)
        outcome = await service.reject(uow, application_id, "Manque de place")
        if outcome.notification_sent is False:
            ...  # offer a re-send
    """

    def __init__(self, notifier: INotifier):
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit_application(self, uow: AbstractUnitOfWork, application: Application) -> Application:
        """
        Record a new application in pending status for the current edition.

        The organizer is alerted after commit; the alert's outcome does not
        affect the submission.

        Raises:
            ValueError: If the application is not pending or its ID already exists
            InvalidInput: If the requested edition is not configured
        """
        if application.status != ApplicationStatus.PENDING:
            raise ValueError("New applications must be pending")

        requested_id = application.market_configuration_id
        config = await self.resolve_config(uow, requested_id)
        if requested_id and config.id != requested_id:
            raise InvalidInput(
                f"Unknown market configuration: {requested_id}",
                field_name="market_configuration_id"
            )
        application.market_configuration_id = config.id

        saved = await uow.applications.add(application)

        async def notify_organizer():
            result = await self._notifier.send_new_application(saved, config)
            if not result.success:
                logger.warning(f"⚠️ Organizer alert failed for {saved.id}: {result.error}")

        uow.add_post_commit_hook(notify_organizer)
        await uow.commit()

        logger.info(f"📨 New application {saved.id} from {saved.company_name}")
        return saved

    # ------------------------------------------------------------------
    # Lifecycle events
    # ------------------------------------------------------------------

    async def accept(
        self,
        uow: AbstractUnitOfWork,
        application_id: ApplicationId,
        message: Optional[str] = None
    ) -> TransitionOutcome:
        """
        Raises:
            ApplicationNotFoundError, InvalidTransition
        """
        application = await self._get(uow, application_id)
        return await self._apply(uow, lifecycle.accept(application, message))

    async def reject(
        self,
        uow: AbstractUnitOfWork,
        application_id: ApplicationId,
        justification: str
    ) -> TransitionOutcome:
        """
        Raises:
            ApplicationNotFoundError, InvalidTransition, InvalidInput
        """
        application = await self._get(uow, application_id)
        return await self._apply(uow, lifecycle.reject(application, justification))

    async def submit_details(
        self,
        uow: AbstractUnitOfWork,
        application_id: ApplicationId,
        details: DetailedInfo
    ) -> TransitionOutcome:
        """
        Raises:
            ApplicationNotFoundError, InvalidTransition, InvalidInput
        """
        application = await self._get(uow, application_id)
        return await self._apply(uow, lifecycle.submit_details(application, details))

    async def validate(self, uow: AbstractUnitOfWork, application_id: ApplicationId) -> TransitionOutcome:
        """
        Raises:
            ApplicationNotFoundError, InvalidTransition
        """
        application = await self._get(uow, application_id)
        return await self._apply(uow, lifecycle.validate(application))

    async def resend_notification(
        self,
        uow: AbstractUnitOfWork,
        application_id: ApplicationId
    ) -> TransitionOutcome:
        """
        Send again the notification matching the current status, without
        touching the status.

        Raises:
            ApplicationNotFoundError
            InvalidTransition: If the current status has no notification (pending, validated)
        """
        application = await self._get(uow, application_id)
        intent = lifecycle.intent_for_current_status(application)
        if intent is None:
            raise InvalidTransition(application.id, application.status, "resend notification for")

        config = await self.resolve_config(uow, application.market_configuration_id)
        result = await self._dispatch(application, intent, config)
        return TransitionOutcome(
            application=application,
            from_status=application.status,
            config=config,
            notification=result,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def resolve_config(self, uow: AbstractUnitOfWork, selected_id: Optional[str] = None) -> PriceConfig:
        """Edition configuration to use (see resolve_price_config)"""
        configs = await uow.price_configs.list_all()
        return resolve_price_config(configs, selected_id)

    async def list_applications(
        self,
        uow: AbstractUnitOfWork,
        config: PriceConfig,
        status: Optional[ApplicationStatus] = None,
        search: Optional[str] = None
    ) -> List[Application]:
        """Applications of an edition (all applications for the built-in default edition)"""
        criteria = ApplicationFilter(
            market_configuration_id=config.id,
            status=status,
            search=search,
        )
        return await uow.applications.list(criteria)

    async def dashboard_stats(
        self,
        uow: AbstractUnitOfWork,
        selected_config_id: Optional[str] = None
    ) -> DashboardStats:
        config = await self.resolve_config(uow, selected_config_id)
        applications = await self.list_applications(uow, config)
        return aggregate(applications, config)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _get(self, uow: AbstractUnitOfWork, application_id: ApplicationId) -> Application:
        # Always re-read right before deciding: concurrent admin actions are last-write-wins
        application = await uow.applications.get_by_id(application_id)
        if application is None:
            raise ApplicationNotFoundError(application_id)
        return application

    async def _apply(self, uow: AbstractUnitOfWork, transition: Transition) -> TransitionOutcome:
        """Persist and commit the transition, then dispatch its intent"""
        application = transition.application

        # Edition is read before the commit; only the best-effort dispatch follows it
        config = await self.resolve_config(uow, application.market_configuration_id)

        await uow.applications.update(application)
        await uow.commit()

        logger.info(
            f"🔁 Application {application.id}: {transition.from_status.value} "
            f"--{transition.event.value}--> {transition.to_status.value}"
        )

        result = None
        if transition.intent is not None:
            result = await self._dispatch(application, transition.intent, config)

        return TransitionOutcome(
            application=application,
            from_status=transition.from_status,
            config=config,
            notification=result,
        )

    async def _dispatch(
        self,
        application: Application,
        intent: NotificationIntent,
        config: PriceConfig
    ) -> NotificationResult:
        """Execute a notification intent; failures are returned, not raised"""
        try:
            if intent.kind == NotificationKind.ACCEPTANCE:
                result = await self._notifier.send_acceptance(application, intent.message, config)
            elif intent.kind == NotificationKind.REJECTION:
                result = await self._notifier.send_rejection(application, intent.message, config)
            else:
                result = await self._notifier.send_final_confirmation(
                    application, intent.detailed_info, config
                )
        except Exception as e:
            logger.error(
                f"❌ Notifier raised while sending {intent.kind.value} "
                f"for {application.id}: {e}",
                exc_info=True
            )
            return NotificationResult.failed(str(e))

        if not result.success:
            logger.warning(
                f"⚠️ {intent.kind.value} notification not delivered for "
                f"{application.id}: {result.error}"
            )
        return result
