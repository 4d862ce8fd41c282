"""
Market configuration repository.

Saving a configuration makes it the current edition: the flag is cleared
on every other row in the same flush.
"""

from datetime import timezone
from typing import List, Optional
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from marcheconnect.core.interfaces import IPriceConfigRepository
from marcheconnect.db.models import MarketConfiguration
from marcheconnect.domain.entities import PriceConfig

logger = logging.getLogger(__name__)


class PriceConfigRepository(IPriceConfigRepository):
    """Repository for PriceConfig entity"""

    def __init__(self, session: AsyncSession):
        self._db = session

    async def list_all(self) -> List[PriceConfig]:
        """All configurations, highest market year first"""
        result = await self._db.execute(
            select(MarketConfiguration).order_by(MarketConfiguration.market_year.desc())
        )
        return [self._from_orm(row) for row in result.scalars().all()]

    async def get_by_id(self, config_id: str) -> Optional[PriceConfig]:
        """Get configuration by ID"""
        result = await self._db.execute(
            select(MarketConfiguration).where(MarketConfiguration.id == config_id)
        )
        row = result.scalar_one_or_none()
        return self._from_orm(row) if row else None

    async def get_by_year(self, market_year: int) -> Optional[PriceConfig]:
        """Get configuration of a given edition"""
        result = await self._db.execute(
            select(MarketConfiguration).where(MarketConfiguration.market_year == market_year)
        )
        row = result.scalar_one_or_none()
        return self._from_orm(row) if row else None

    async def save(self, config: PriceConfig) -> PriceConfig:
        """
        Insert or update a configuration.

        The ID defaults to "config-{year}". When the saved configuration is
        flagged current, the flag is removed from all other configurations.
        """
        config_id = config.id or PriceConfig.id_for_year(config.market_year)

        row = await self._db.get(MarketConfiguration, config_id)
        if row is None:
            row = MarketConfiguration(id=config_id)
            self._db.add(row)

        row.market_year = config.market_year
        row.edition_number = config.edition_number
        row.price_table1 = config.price_table1
        row.price_table2 = config.price_table2
        row.price_meal = config.price_meal
        row.price_electricity = config.price_electricity
        row.current_market = config.current_market
        row.notification_email = config.notification_email
        row.poster_image_url = config.poster_image_url

        try:
            await self._db.flush()
        except IntegrityError as e:
            logger.error(f"Market year {config.market_year} is already configured")
            raise ValueError(
                f"A configuration already exists for market year {config.market_year}"
            ) from e

        if config.current_market:
            await self._db.execute(
                update(MarketConfiguration)
                .where(MarketConfiguration.id != config_id)
                .values(current_market=False)
            )

        await self._db.refresh(row)

        logger.info(f"💾 Saved market configuration {config_id} (year {config.market_year})")
        return self._from_orm(row)

    def _from_orm(self, row: MarketConfiguration) -> PriceConfig:
        created_at = row.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return PriceConfig(
            id=row.id,
            market_year=row.market_year,
            edition_number=row.edition_number or "",
            price_table1=row.price_table1,
            price_table2=row.price_table2,
            price_meal=row.price_meal,
            price_electricity=row.price_electricity,
            current_market=bool(row.current_market),
            notification_email=row.notification_email,
            poster_image_url=row.poster_image_url,
            created_at=created_at,
        )
