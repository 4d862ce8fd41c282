"""
Pricing rules - edition configuration selection and booth billing.

Both functions are pure: the full configuration set is passed in explicitly,
nothing is read from global state.
"""

from typing import Iterable, Optional

from .entities import Application, PriceConfig
from .value_objects import TableTier


DEFAULT_MARKET_YEAR = 2026


def default_price_config() -> PriceConfig:
    """Built-in configuration used when no edition has been configured yet"""
    return PriceConfig(
        market_year=DEFAULT_MARKET_YEAR,
        edition_number="6ème",
        price_table1=40,
        price_table2=60,
        price_meal=8,
        price_electricity=1,
    )


def _recency_key(config: PriceConfig):
    # Highest year first, then most recently created. Configs without a
    # creation date sort as the oldest of their year.
    created = config.created_at.timestamp() if config.created_at else float("-inf")
    return (config.market_year, created)


def resolve_price_config(
    configs: Iterable[PriceConfig],
    selected_id: Optional[str] = None
) -> PriceConfig:
    """
    Select the configuration to use.

    Selection order:
        1. The configuration whose id matches selected_id
        2. The configuration flagged as current edition (several flagged:
           highest year, then most recently created)
        3. The highest year / most recently created configuration
        4. The built-in default

    Never raises - always returns a usable configuration.
    """
    configs = list(configs)

    if selected_id:
        for config in configs:
            if config.id == selected_id:
                return config

    current = [config for config in configs if config.current_market]
    if current:
        return max(current, key=_recency_key)

    if configs:
        return max(configs, key=_recency_key)

    return default_price_config()


def table_price(requested_tables: TableTier, config: PriceConfig) -> int:
    """Booth price for the requested tier"""
    if TableTier(requested_tables) == TableTier.ONE:
        return config.price_table1
    return config.price_table2


def compute_total(application: Application, config: PriceConfig) -> int:
    """
    Amount owed by a vendor, in whole euros.

    total = table price + meals * meal price + electricity option

    Only applications whose details form has been received are billed;
    the total is 0 for every other status.
    """
    if not application.is_billable:
        return 0

    total = table_price(application.requested_tables, config)
    total += application.sunday_lunch_count * config.price_meal
    if application.needs_electricity:
        total += config.price_electricity
    return total
