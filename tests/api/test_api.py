"""
End-to-end tests of the HTTP API.

Collaborators (notifier, geocoder) are replaced through
app.dependency_overrides; the database is real.
"""
import json
from contextlib import asynccontextmanager

import httpx
import pytest
import pytest_asyncio

from marcheconnect.api.dependencies import get_geocoding_processor_factory, get_notifier
from marcheconnect.core.interfaces import GeoMatch, IGeocoder
from marcheconnect.main import app
from marcheconnect.services.geocoding_service import GeocodingBatchProcessor
from tests.factories import FakeNotifier

pytestmark = [pytest.mark.asyncio, pytest.mark.usefixtures("clean_database")]


APPLICATION_PAYLOAD = {
    "first_name": "Marie",
    "last_name": "Dupont",
    "email": "marie.dupont@example.com",
    "phone": "0601020304",
    "company_name": "Les Bougies de Marie",
    "product_description": "Bougies artisanales parfumées",
    "requested_tables": "2",
    "address": "12 rue des Lilas",
    "city": "Lyon",
    "postal_code": "69003",
}

DETAILS_PAYLOAD = {
    "id_document_url": "uploads/id/marie.jpg",
    "needs_electricity": True,
    "sunday_lunch_count": 3,
    "insurance_company": "MAIF",
    "insurance_policy_number": "POL-123456",
    "agreed_to_image_rights": True,
    "agreed_to_terms": True,
}


class CityGeocoder(IGeocoder):
    async def lookup(self, query):
        return [GeoMatch(latitude=45.76, longitude=4.83)]


@pytest.fixture
def notifier():
    fake = FakeNotifier()
    app.dependency_overrides[get_notifier] = lambda: fake

    @asynccontextmanager
    async def processor():
        yield GeocodingBatchProcessor(CityGeocoder(), delay_seconds=0)

    app.dependency_overrides[get_geocoding_processor_factory] = lambda: processor
    yield fake
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(notifier):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


async def _submit(client, **overrides) -> str:
    response = await client.post("/api/v1/applications", json={**APPLICATION_PAYLOAD, **overrides})
    assert response.status_code == 201
    return response.json()["application_id"]


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestPublicForm:

    async def test_submit_creates_pending_application(self, client, notifier):
        response = await client.post("/api/v1/applications", json=APPLICATION_PAYLOAD)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["application_id"].startswith("app_")
        assert notifier.kinds() == ["new_application"]

    async def test_invalid_tier_rejected(self, client):
        response = await client.post("/api/v1/applications", json={**APPLICATION_PAYLOAD, "requested_tables": "3"})
        assert response.status_code == 422

    async def test_invalid_email_rejected(self, client):
        response = await client.post("/api/v1/applications", json={**APPLICATION_PAYLOAD, "email": "not-an-email"})
        assert response.status_code == 422

    async def test_unknown_edition_rejected(self, client, notifier):
        await client.put("/api/v1/admin/configs", json={"market_year": 2026})

        response = await client.post(
            "/api/v1/applications",
            json={**APPLICATION_PAYLOAD, "market_configuration_id": "config-1999"},
        )

        assert response.status_code == 422
        assert "config-1999" in response.json()["detail"]
        assert (await client.get("/api/v1/admin/applications")).json() == []
        assert notifier.sent == []

    async def test_details_form_hidden_until_accepted(self, client):
        application_id = await _submit(client)

        response = await client.get(f"/api/v1/applications/{application_id}/details")

        assert response.status_code == 404

    async def test_details_flow_bills_the_vendor(self, client, notifier):
        application_id = await _submit(client)
        await client.post(f"/api/v1/admin/applications/{application_id}/accept", json={})

        form = await client.get(f"/api/v1/applications/{application_id}/details")
        assert form.status_code == 200
        assert form.json()["detailed_info"] is None

        response = await client.post(f"/api/v1/applications/{application_id}/details", json=DETAILS_PAYLOAD)

        assert response.status_code == 200
        body = response.json()
        assert body["to_status"] == "submitted_form2"
        assert body["notification_sent"] is True
        assert body["application"]["total_due"] == 85
        assert notifier.kinds()[-1] == "final_confirmation"

    async def test_too_many_meals_rejected(self, client):
        application_id = await _submit(client)
        await client.post(f"/api/v1/admin/applications/{application_id}/accept", json={})

        response = await client.post(
            f"/api/v1/applications/{application_id}/details",
            json={**DETAILS_PAYLOAD, "sunday_lunch_count": 7},
        )

        assert response.status_code == 422

    async def test_details_before_acceptance_conflict(self, client):
        application_id = await _submit(client)

        response = await client.post(f"/api/v1/applications/{application_id}/details", json=DETAILS_PAYLOAD)

        assert response.status_code == 409


class TestAdminActions:

    async def test_reject_requires_justification(self, client):
        application_id = await _submit(client)

        response = await client.post(
            f"/api/v1/admin/applications/{application_id}/reject", json={"justification": "   "}
        )

        assert response.status_code == 422

    async def test_rejected_cannot_be_accepted(self, client):
        application_id = await _submit(client)
        rejected = await client.post(
            f"/api/v1/admin/applications/{application_id}/reject", json={"justification": "Manque de place"}
        )
        assert rejected.json()["application"]["rejection_justification"] == "Manque de place"

        response = await client.post(f"/api/v1/admin/applications/{application_id}/accept", json={})

        assert response.status_code == 409

    async def test_failed_notification_reported_and_resent(self, client, notifier):
        application_id = await _submit(client)
        notifier.fail = True

        accepted = await client.post(
            f"/api/v1/admin/applications/{application_id}/accept", json={"message": "Bienvenue"}
        )

        assert accepted.status_code == 200
        assert accepted.json()["status_changed"] is True
        assert accepted.json()["notification_sent"] is False
        assert accepted.json()["notification_error"] == "SMTP unavailable"

        notifier.fail = False
        resent = await client.post(f"/api/v1/admin/applications/{application_id}/notifications/resend")

        assert resent.status_code == 200
        assert resent.json()["status_changed"] is False
        assert resent.json()["notification_sent"] is True
        assert resent.json()["to_status"] == "accepted_form1"

    async def test_validate(self, client):
        application_id = await _submit(client)
        await client.post(f"/api/v1/admin/applications/{application_id}/accept", json={})
        await client.post(f"/api/v1/applications/{application_id}/details", json=DETAILS_PAYLOAD)

        response = await client.post(f"/api/v1/admin/applications/{application_id}/validate")

        assert response.status_code == 200
        assert response.json()["to_status"] == "validated"
        assert response.json()["notification_sent"] is None

    async def test_unknown_application(self, client):
        response = await client.post("/api/v1/admin/applications/app_missing/accept", json={})
        assert response.status_code == 404

    async def test_malformed_id_is_not_found(self, client):
        response = await client.get("/api/v1/admin/applications/not-an-id")
        assert response.status_code == 404

    async def test_draft_justification(self, client):
        application_id = await _submit(client)

        response = await client.post(
            "/api/v1/admin/rejection-justification",
            json={"application_id": application_id, "reasons": ["Manque de place"]},
        )

        assert response.status_code == 200
        assert "Marie Dupont" in response.json()["justification_message"]

    async def test_draft_justification_needs_a_reason(self, client):
        application_id = await _submit(client)

        response = await client.post(
            "/api/v1/admin/rejection-justification",
            json={"application_id": application_id, "reasons": ["  "]},
        )

        assert response.status_code == 422


class TestAdminDashboard:

    async def test_list_filters_by_status_and_search(self, client):
        first = await _submit(client)
        second = await _submit(client, company_name="Savons du Beaujolais")
        await client.post(f"/api/v1/admin/applications/{second}/accept", json={})

        pending = await client.get("/api/v1/admin/applications", params={"status": "pending"})
        searched = await client.get("/api/v1/admin/applications", params={"search": "savons"})

        assert [a["id"] for a in pending.json()] == [first]
        assert [a["id"] for a in searched.json()] == [second]

    async def test_saved_config_becomes_current_and_prices_stats(self, client):
        saved = await client.put(
            "/api/v1/admin/configs",
            json={"market_year": 2027, "edition_number": "7ème", "price_table2": 70},
        )
        assert saved.status_code == 200
        assert saved.json()["id"] == "config-2027"
        assert saved.json()["current_market"] is True

        application_id = await _submit(client)
        await client.post(f"/api/v1/admin/applications/{application_id}/accept", json={})
        await client.post(f"/api/v1/applications/{application_id}/details", json=DETAILS_PAYLOAD)

        stats = await client.get("/api/v1/admin/stats")

        assert stats.json()["config_id"] == "config-2027"
        assert stats.json()["submitted"] == 1
        assert stats.json()["revenue"] == 70 + 3 * 8 + 1

    async def test_current_config_defaults_to_builtin(self, client):
        response = await client.get("/api/v1/admin/configs/current")

        assert response.status_code == 200
        assert response.json()["id"] is None
        assert response.json()["market_year"] == 2026

    async def test_map_stream(self, client):
        await _submit(client)
        await _submit(client, city=None)

        response = await client.get("/api/v1/admin/map/stream")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = [
            json.loads(line[len("data: "):])
            for line in response.text.splitlines()
            if line.startswith("data: ")
        ]
        assert [event["event"] for event in events] == ["marker", "done"]
        assert events[0]["data"]["lat"] == 45.76
        assert events[1]["data"] == {"markers": 1}
