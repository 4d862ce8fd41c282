"""
Application lifecycle state machine.

    pending ──accept──▶ accepted_form1 ──submit_details──▶ submitted_form2 ──validate──▶ validated
       │                                                     │    ▲
       └──reject──▶ rejected                                 └────┘ submit_details (overwrite)

Every function here is pure: it checks that the event is legal, builds the
next version of the application and returns it together with the
notification intent the transition calls for. Nothing is persisted and
nothing is sent - that is the job of the application service.
"""

import enum
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Optional, Tuple

from .entities import Application, DetailedInfo, InvalidInput, InvalidTransition
from .value_objects import ApplicationStatus


class LifecycleEvent(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    SUBMIT_DETAILS = "submit_details"
    VALIDATE = "validate"


class NotificationKind(str, enum.Enum):
    ACCEPTANCE = "acceptance"
    REJECTION = "rejection"
    FINAL_CONFIRMATION = "final_confirmation"


TRANSITIONS: Dict[Tuple[ApplicationStatus, LifecycleEvent], ApplicationStatus] = {
    (ApplicationStatus.PENDING, LifecycleEvent.ACCEPT): ApplicationStatus.ACCEPTED_FORM1,
    (ApplicationStatus.PENDING, LifecycleEvent.REJECT): ApplicationStatus.REJECTED,
    (ApplicationStatus.ACCEPTED_FORM1, LifecycleEvent.SUBMIT_DETAILS): ApplicationStatus.SUBMITTED_FORM2,
    (ApplicationStatus.SUBMITTED_FORM2, LifecycleEvent.SUBMIT_DETAILS): ApplicationStatus.SUBMITTED_FORM2,
    (ApplicationStatus.SUBMITTED_FORM2, LifecycleEvent.VALIDATE): ApplicationStatus.VALIDATED,
}


@dataclass(frozen=True)
class NotificationIntent:
    """A notification the orchestration layer must send after committing"""

    kind: NotificationKind
    message: Optional[str] = None  # Organizer message or rejection justification
    detailed_info: Optional[DetailedInfo] = None


@dataclass(frozen=True)
class Transition:
    """Outcome of a legal lifecycle event"""

    event: LifecycleEvent
    from_status: ApplicationStatus
    application: Application  # Next version of the application
    intent: Optional[NotificationIntent] = None

    @property
    def to_status(self) -> ApplicationStatus:
        return self.application.status


def allowed_events(status: ApplicationStatus) -> FrozenSet[LifecycleEvent]:
    """Events that are legal from a given status"""
    status = ApplicationStatus(status)
    return frozenset(event for (source, event) in TRANSITIONS if source == status)


def can_apply(application: Application, event: LifecycleEvent) -> bool:
    return (application.status, LifecycleEvent(event)) in TRANSITIONS


def _target(application: Application, event: LifecycleEvent) -> ApplicationStatus:
    try:
        return TRANSITIONS[(application.status, event)]
    except KeyError:
        raise InvalidTransition(application.id, application.status, event.value) from None


def accept(application: Application, message: Optional[str] = None) -> Transition:
    """
    Accept a pending application.

    Args:
        application: Application in pending status
        message: Optional personal message from the organizer

    Raises:
        InvalidTransition: If the application is not pending
    """
    target = _target(application, LifecycleEvent.ACCEPT)
    message = message.strip() if message else None

    return Transition(
        event=LifecycleEvent.ACCEPT,
        from_status=application.status,
        application=replace(application, status=target),
        intent=NotificationIntent(NotificationKind.ACCEPTANCE, message=message or None),
    )


def reject(application: Application, justification: str) -> Transition:
    """
    Reject a pending application.

    The justification is stored on the application and sent to the vendor.
    Whitespace-only text counts as empty.

    Raises:
        InvalidTransition: If the application is not pending
        InvalidInput: If the justification is empty
    """
    target = _target(application, LifecycleEvent.REJECT)

    text = (justification or "").strip()
    if not text:
        raise InvalidInput("A rejection justification is required", field_name="justification")

    return Transition(
        event=LifecycleEvent.REJECT,
        from_status=application.status,
        application=replace(application, status=target, rejection_justification=text),
        intent=NotificationIntent(NotificationKind.REJECTION, message=text),
    )


def submit_details(application: Application, details: DetailedInfo) -> Transition:
    """
    Attach the vendor's details form.

    Legal from accepted_form1, and from submitted_form2 as a re-submission
    that overwrites the previous declaration.

    Raises:
        InvalidTransition: If the application is in any other status
        InvalidInput: If no details are supplied
    """
    target = _target(application, LifecycleEvent.SUBMIT_DETAILS)

    if not isinstance(details, DetailedInfo):
        raise InvalidInput("Details form payload is required", field_name="detailed_info")

    return Transition(
        event=LifecycleEvent.SUBMIT_DETAILS,
        from_status=application.status,
        application=replace(application, status=target, detailed_info=details),
        intent=NotificationIntent(NotificationKind.FINAL_CONFIRMATION, detailed_info=details),
    )


def validate(application: Application) -> Transition:
    """
    Confirm a submitted application (administrative confirmation, no notification).

    Raises:
        InvalidTransition: If the details form has not been submitted
    """
    target = _target(application, LifecycleEvent.VALIDATE)

    return Transition(
        event=LifecycleEvent.VALIDATE,
        from_status=application.status,
        application=replace(application, status=target),
    )


def intent_for_current_status(application: Application) -> Optional[NotificationIntent]:
    """
    Rebuild the notification that led to the application's current status.

    Used to re-send a notification without re-triggering the transition.
    The acceptance message is not stored, so a re-sent acceptance has none.
    """
    if application.status == ApplicationStatus.ACCEPTED_FORM1:
        return NotificationIntent(NotificationKind.ACCEPTANCE)
    if application.status == ApplicationStatus.REJECTED:
        return NotificationIntent(
            NotificationKind.REJECTION,
            message=application.rejection_justification,
        )
    if application.status == ApplicationStatus.SUBMITTED_FORM2:
        return NotificationIntent(
            NotificationKind.FINAL_CONFIRMATION,
            detailed_info=application.detailed_info,
        )
    return None
