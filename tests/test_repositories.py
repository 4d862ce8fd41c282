"""
Integration tests for ApplicationRepository and PriceConfigRepository.

These tests verify the repositories work correctly with a real database.
"""
from datetime import datetime, timedelta, timezone

import pytest

from marcheconnect.core.interfaces import ApplicationFilter
from marcheconnect.db.connection import get_db_session
from marcheconnect.domain.entities import ApplicationNotFoundError, PriceConfig
from marcheconnect.domain.value_objects import ApplicationId, ApplicationStatus
from marcheconnect.repositories.application_repository import ApplicationRepository
from tests.factories import make_application, make_details

pytestmark = [pytest.mark.asyncio]


class TestApplicationRepository:

    async def test_save_and_retrieve_with_details(self, uow):
        details = make_details(sunday_lunch_count=2, needs_electricity=True, siret="12345678900011")
        application = make_application(status=ApplicationStatus.SUBMITTED_FORM2, detailed_info=details)

        await uow.applications.add(application)
        retrieved = await uow.applications.get_by_id(application.id)

        assert retrieved is not None
        assert retrieved.status == ApplicationStatus.SUBMITTED_FORM2
        assert retrieved.company_name == "Les Bougies de Marie"
        assert retrieved.detailed_info.sunday_lunch_count == 2
        assert retrieved.detailed_info.needs_electricity is True
        assert retrieved.detailed_info.siret == "12345678900011"
        assert retrieved.created_at.tzinfo is not None

    async def test_get_nonexistent_application(self, uow):
        assert await uow.applications.get_by_id(ApplicationId("app_does_not_exist")) is None

    async def test_duplicate_id_fails(self, clean_database):
        application = make_application()
        async for db_session in get_db_session():
            await ApplicationRepository(db_session).add(application)

        # Same ID in a new session
        with pytest.raises(ValueError, match="already exists"):
            async for db_session in get_db_session():
                await ApplicationRepository(db_session).add(make_application(id=application.id))

    async def test_update_overwrites_details(self, uow):
        application = make_application(status=ApplicationStatus.SUBMITTED_FORM2)
        await uow.applications.add(application)

        application.detailed_info = make_details(sunday_lunch_count=6, insurance_company="AXA")
        await uow.applications.update(application)
        await uow.commit()

        retrieved = await uow.applications.get_by_id(application.id)
        assert retrieved.detailed_info.sunday_lunch_count == 6
        assert retrieved.detailed_info.insurance_company == "AXA"

    async def test_update_status_and_justification(self, uow):
        application = make_application()
        await uow.applications.add(application)

        application.status = ApplicationStatus.REJECTED
        application.rejection_justification = "Manque de place"
        await uow.applications.update(application)

        retrieved = await uow.applications.get_by_id(application.id)
        assert retrieved.status == ApplicationStatus.REJECTED
        assert retrieved.rejection_justification == "Manque de place"

    async def test_update_nonexistent_application(self, uow):
        with pytest.raises(ApplicationNotFoundError):
            await uow.applications.update(make_application())

    async def test_list_filters_and_orders_newest_first(self, uow):
        await uow.price_configs.save(PriceConfig(market_year=2025))
        await uow.price_configs.save(PriceConfig(market_year=2026))
        base = datetime(2026, 9, 1, tzinfo=timezone.utc)

        older = make_application(market_configuration_id="config-2026", created_at=base)
        newer = make_application(
            market_configuration_id="config-2026",
            created_at=base + timedelta(days=1),
            company_name="Savons du Beaujolais",
            first_name="Paul",
            last_name="Martin",
            status=ApplicationStatus.ACCEPTED_FORM1,
        )
        other_edition = make_application(market_configuration_id="config-2025", created_at=base)
        for application in (older, newer, other_edition):
            await uow.applications.add(application)

        edition = await uow.applications.list(ApplicationFilter(market_configuration_id="config-2026"))
        assert [a.id for a in edition] == [newer.id, older.id]

        accepted = await uow.applications.list(ApplicationFilter(status=ApplicationStatus.ACCEPTED_FORM1))
        assert [a.id for a in accepted] == [newer.id]

        by_company = await uow.applications.list(ApplicationFilter(search="savons"))
        assert [a.id for a in by_company] == [newer.id]

        by_contact = await uow.applications.list(ApplicationFilter(search="paul martin"))
        assert [a.id for a in by_contact] == [newer.id]

        assert len(await uow.applications.list()) == 3


class TestPriceConfigRepository:

    async def test_id_defaults_to_year(self, uow):
        saved = await uow.price_configs.save(PriceConfig(market_year=2026, edition_number="6ème"))

        assert saved.id == "config-2026"
        assert saved.created_at is not None
        assert (await uow.price_configs.get_by_id("config-2026")).edition_number == "6ème"
        assert (await uow.price_configs.get_by_year(2026)).id == "config-2026"

    async def test_saving_current_clears_other_flags(self, uow):
        await uow.price_configs.save(PriceConfig(market_year=2025, current_market=True))
        await uow.price_configs.save(PriceConfig(market_year=2026, current_market=True))

        configs = await uow.price_configs.list_all()

        assert [c.market_year for c in configs] == [2026, 2025]
        assert [c.current_market for c in configs] == [True, False]

    async def test_update_existing_config(self, uow):
        await uow.price_configs.save(PriceConfig(market_year=2026))
        await uow.price_configs.save(PriceConfig(id="config-2026", market_year=2026, price_meal=10))

        configs = await uow.price_configs.list_all()
        assert len(configs) == 1
        assert configs[0].price_meal == 10

    async def test_duplicate_year_under_other_id_fails(self, uow):
        await uow.price_configs.save(PriceConfig(market_year=2026))
        await uow.commit()

        with pytest.raises(ValueError, match="2026"):
            await uow.price_configs.save(PriceConfig(id="config-other", market_year=2026))
        await uow.rollback()
