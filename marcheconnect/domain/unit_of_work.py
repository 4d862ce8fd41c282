"""
Transaction boundary for one admin or vendor action.

Repositories share the request session; the organizer alert and other
side effects are registered as hooks and only run once the status change
is committed.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, TYPE_CHECKING
from sqlalchemy.ext.asyncio import AsyncSession
import inspect
import logging

if TYPE_CHECKING:
    from marcheconnect.core.interfaces import IApplicationRepository, IPriceConfigRepository

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    applications: 'IApplicationRepository'
    price_configs: 'IPriceConfigRepository'

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        # Hooks only run on the commit path
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self.close()

    @abstractmethod
    async def commit(self):
        ...

    @abstractmethod
    async def rollback(self):
        ...

    @abstractmethod
    async def close(self):
        ...

    @abstractmethod
    def add_post_commit_hook(self, hook: Callable):
        """hook: sync or async callable, run once after the next successful commit"""
        ...


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """Applications and edition settings over one AsyncSession"""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._post_commit_hooks: List[Callable] = []

        # Deferred: the domain package must load without the db models
        from marcheconnect.repositories.application_repository import ApplicationRepository
        from marcheconnect.repositories.price_config_repository import PriceConfigRepository

        self.applications = ApplicationRepository(session)
        self.price_configs = PriceConfigRepository(session)

    async def commit(self):
        """
        Commit, then run the registered hooks in order.

        A failing hook is logged and skipped: the applications are already stored.
        """
        try:
            await self._session.commit()
            logger.debug(f"✅ Market data committed, {len(self._post_commit_hooks)} hook(s) pending")

            # Hooks may register further hooks; take a snapshot
            hooks = list(self._post_commit_hooks)
            self._post_commit_hooks.clear()

            for hook in hooks:
                try:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    logger.error(f"❌ Post-commit hook failed: {e}", exc_info=True)

        finally:
            self._post_commit_hooks.clear()

    async def rollback(self):
        try:
            await self._session.rollback()
            logger.debug("↩️  Market data rolled back")
        finally:
            self._post_commit_hooks.clear()

    async def close(self):
        await self._session.close()

    def add_post_commit_hook(self, hook: Callable):
        self._post_commit_hooks.append(hook)


def get_unit_of_work(session: AsyncSession) -> AbstractUnitOfWork:
    return SQLAlchemyUnitOfWork(session)
