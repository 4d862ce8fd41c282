"""
Tests for the application lifecycle state machine.
"""
import pytest

from marcheconnect.domain import lifecycle
from marcheconnect.domain.entities import InvalidInput, InvalidTransition
from marcheconnect.domain.lifecycle import LifecycleEvent, NotificationKind, allowed_events
from marcheconnect.domain.value_objects import ApplicationStatus
from tests.factories import make_application, make_details


class TestAccept:

    def test_pending_to_accepted_with_acceptance_intent(self):
        application = make_application()

        transition = lifecycle.accept(application, "  Bienvenue !  ")

        assert transition.from_status == ApplicationStatus.PENDING
        assert transition.to_status == ApplicationStatus.ACCEPTED_FORM1
        assert transition.intent.kind == NotificationKind.ACCEPTANCE
        assert transition.intent.message == "Bienvenue !"

    def test_blank_message_is_dropped(self):
        transition = lifecycle.accept(make_application(), "   ")
        assert transition.intent.message is None

    def test_does_not_mutate_input(self):
        application = make_application()
        lifecycle.accept(application)
        assert application.status == ApplicationStatus.PENDING

    def test_rejected_application_cannot_be_accepted(self):
        application = make_application(status=ApplicationStatus.REJECTED)

        with pytest.raises(InvalidTransition) as exc_info:
            lifecycle.accept(application)

        assert exc_info.value.status == ApplicationStatus.REJECTED
        assert application.status == ApplicationStatus.REJECTED


class TestReject:

    def test_stores_stripped_justification(self):
        transition = lifecycle.reject(make_application(), "  Manque de place  ")

        assert transition.to_status == ApplicationStatus.REJECTED
        assert transition.application.rejection_justification == "Manque de place"
        assert transition.intent.kind == NotificationKind.REJECTION
        assert transition.intent.message == "Manque de place"

    @pytest.mark.parametrize("justification", ["", "   ", "\n\t", None])
    def test_empty_justification_is_invalid_input(self, justification):
        with pytest.raises(InvalidInput):
            lifecycle.reject(make_application(), justification)

    def test_illegal_status_reported_before_input(self):
        application = make_application(status=ApplicationStatus.VALIDATED)
        with pytest.raises(InvalidTransition):
            lifecycle.reject(application, "")


class TestSubmitDetails:

    def test_accepted_to_submitted_with_confirmation_intent(self):
        application = make_application(status=ApplicationStatus.ACCEPTED_FORM1)
        details = make_details(sunday_lunch_count=2)

        transition = lifecycle.submit_details(application, details)

        assert transition.to_status == ApplicationStatus.SUBMITTED_FORM2
        assert transition.application.detailed_info is details
        assert transition.intent.kind == NotificationKind.FINAL_CONFIRMATION
        assert transition.intent.detailed_info is details

    def test_resubmission_overwrites_details(self):
        application = make_application(status=ApplicationStatus.SUBMITTED_FORM2)
        replacement = make_details(sunday_lunch_count=5, needs_electricity=True)

        transition = lifecycle.submit_details(application, replacement)

        assert transition.from_status == ApplicationStatus.SUBMITTED_FORM2
        assert transition.to_status == ApplicationStatus.SUBMITTED_FORM2
        assert transition.application.sunday_lunch_count == 5
        assert transition.intent.kind == NotificationKind.FINAL_CONFIRMATION

    def test_pending_application_cannot_submit_details(self):
        with pytest.raises(InvalidTransition):
            lifecycle.submit_details(make_application(), make_details())

    def test_missing_details_is_invalid_input(self):
        application = make_application(status=ApplicationStatus.ACCEPTED_FORM1)
        with pytest.raises(InvalidInput):
            lifecycle.submit_details(application, None)


class TestValidate:

    def test_submitted_to_validated_without_notification(self):
        application = make_application(status=ApplicationStatus.SUBMITTED_FORM2)

        transition = lifecycle.validate(application)

        assert transition.to_status == ApplicationStatus.VALIDATED
        assert transition.intent is None
        assert transition.application.detailed_info == application.detailed_info

    def test_accepted_without_details_cannot_be_validated(self):
        with pytest.raises(InvalidTransition):
            lifecycle.validate(make_application(status=ApplicationStatus.ACCEPTED_FORM1))


@pytest.mark.parametrize("status", [ApplicationStatus.REJECTED, ApplicationStatus.VALIDATED])
def test_terminal_statuses_allow_no_event(status):
    assert status.is_terminal
    assert allowed_events(status) == frozenset()


def test_allowed_events_from_submitted():
    assert allowed_events(ApplicationStatus.SUBMITTED_FORM2) == {
        LifecycleEvent.SUBMIT_DETAILS,
        LifecycleEvent.VALIDATE,
    }


class TestIntentForCurrentStatus:

    def test_rejected_resends_stored_justification(self):
        application = make_application(
            status=ApplicationStatus.REJECTED,
            rejection_justification="Catégorie déjà représentée",
        )
        intent = lifecycle.intent_for_current_status(application)
        assert intent.kind == NotificationKind.REJECTION
        assert intent.message == "Catégorie déjà représentée"

    def test_submitted_resends_confirmation(self):
        application = make_application(status=ApplicationStatus.SUBMITTED_FORM2)
        intent = lifecycle.intent_for_current_status(application)
        assert intent.kind == NotificationKind.FINAL_CONFIRMATION
        assert intent.detailed_info is application.detailed_info

    @pytest.mark.parametrize("status", [ApplicationStatus.PENDING, ApplicationStatus.VALIDATED])
    def test_no_notification_for_pending_or_validated(self, status):
        assert lifecycle.intent_for_current_status(make_application(status=status)) is None


class TestApplicationInvariants:

    def test_details_required_once_submitted(self):
        with pytest.raises(ValueError):
            make_application(status=ApplicationStatus.SUBMITTED_FORM2, detailed_info=None)

    def test_details_forbidden_before_submission(self):
        with pytest.raises(ValueError):
            make_application(status=ApplicationStatus.ACCEPTED_FORM1, detailed_info=make_details())

    def test_justification_only_on_rejected(self):
        with pytest.raises(ValueError):
            make_application(rejection_justification="Non")

    @pytest.mark.parametrize("count", [-1, 7])
    def test_meal_count_bounds(self, count):
        with pytest.raises(ValueError):
            make_details(sunday_lunch_count=count)

    def test_consents_required(self):
        with pytest.raises(ValueError):
            make_details(agreed_to_terms=False)

    def test_tombola_description_cleared_without_lot(self):
        details = make_details(tombola_lot=False, tombola_lot_description="Panier garni")
        assert details.tombola_lot_description is None
