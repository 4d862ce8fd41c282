"""
Pytest configuration and shared fixtures.
"""
import os

# Must be set before marcheconnect.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_marcheconnect.db"
os.environ["ENVIRONMENT"] = "test"
os.environ["SMTP_HOST"] = ""

import pytest_asyncio
from marcheconnect.db.connection import init_db, close_db, get_db_session
from marcheconnect.domain.unit_of_work import get_unit_of_work

TEST_DB_FILE = "test_marcheconnect.db"


def _remove_db_file():
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest_asyncio.fixture(scope="function")
async def clean_database():
    """
    Fresh database for each test that needs one.

    Pure domain tests don't request it and never touch the disk.
    """
    _remove_db_file()

    await init_db()

    yield

    await close_db()

    _remove_db_file()


@pytest_asyncio.fixture
async def uow(clean_database):
    """Unit of Work over a session on the fresh database"""
    async for session in get_db_session():
        yield get_unit_of_work(session)
