"""
Test Suite Configuration
"""
from datetime import date
from typing import AsyncGenerator

import polars as pl
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from visitarchive.archiving.processor import DayArchiveProcessor
from visitarchive.config.settings import ArchivingSettings
from visitarchive.core.metrics import RowFactory
from visitarchive.core.periods import Period
from visitarchive.database.models import Base


@pytest.fixture
def archive_day() -> date:
    """A Monday"""
    return date(2024, 3, 4)


@pytest.fixture
def archiving_settings() -> ArchivingSettings:
    """Default truncation limits"""
    return ArchivingSettings(
        maximum_rows_referers=1000,
        maximum_rows_subtable_referers=50,
        maximum_rows_standard=500,
        site_id=1,
    )


@pytest.fixture
def row_factory() -> RowFactory:
    return RowFactory()


@pytest.fixture
def sample_visits_df() -> pl.DataFrame:
    """One day of visits over every referrer type and three countries"""
    return pl.DataFrame({
        "idvisit": [1, 2, 3, 4, 5, 6, 7],
        "idvisitor": ["v1", "v2", "v3", "v4", "v5", "v6", "v7"],
        "visit_last_action_time": [
            "2024-03-04 08:00:00",
            "2024-03-04 09:30:00",
            "2024-03-04 10:15:00",
            "2024-03-04 12:00:00",
            "2024-03-04 13:45:00",
            "2024-03-04 18:20:00",
            "2024-03-04 23:59:00",
        ],
        "visit_total_actions": [3, 1, 5, 2, 1, 4, 1],
        "visit_total_time": [120, 10, 300, 60, 5, 200, 0],
        "visit_goal_converted": [1, 0, 0, 1, 0, 0, 0],
        "referer_type": ["2", "2", "2", "3", "3", "6", "1"],
        "referer_name": ["Google", "Google", "Bing", "example.com", "example.com", "spring_sale", None],
        "referer_keyword": ["shoes", None, "shoes", None, None, "newsletter", None],
        "referer_url": [
            "https://www.google.com/search?q=shoes",
            "https://www.google.com/search",
            "https://www.bing.com/search?q=shoes",
            "http://example.com/blog",
            "http://example.com/about",
            None,
            None,
        ],
        "location_country": ["fr", "fr", "de", "us", "us", "fr", "us"],
        "location_region": ["11", "11", "BE", "CA", "CA", "11", None],
        "location_city": ["Paris", "Paris", "Berlin", "San Francisco", "Los Angeles", "Paris", None],
        "location_latitude": [48.8566, 48.8566, 52.52, 37.7749, 0.0, None, None],
        "location_longitude": [2.3522, 2.3522, 13.405, -122.4194, 0.0, None, None],
    })


@pytest.fixture
def sample_conversions_df() -> pl.DataFrame:
    """Conversions of the sample visits, including an abandoned cart and a bogus referrer type"""
    return pl.DataFrame({
        "idvisit": [1, 4, 4, 1],
        "idgoal": [1, 0, -1, 2],
        "server_time": [
            "2024-03-04 08:05:00",
            "2024-03-04 12:10:00",
            "2024-03-04 12:20:00",
            "2024-03-04 08:06:00",
        ],
        "referer_type": ["2", "3", "3", "99"],
        "referer_name": ["Google", "example.com", "example.com", "unknown"],
        "referer_keyword": ["shoes", None, None, None],
        "location_country": ["fr", "us", "us", "fr"],
        "location_region": ["11", "CA", "CA", "11"],
        "location_city": ["Paris", "San Francisco", "San Francisco", "Paris"],
        "revenue": [10.0, 99.5, 50.0, 5.0],
        "revenue_subtotal": [None, 90.0, 45.0, None],
        "revenue_tax": [None, 5.0, 2.5, None],
        "revenue_shipping": [None, 4.5, 2.5, None],
        "revenue_discount": [None, 0.0, 0.0, None],
        "items": [None, 2, 1, None],
    })


@pytest.fixture
def day_processor(archive_day, sample_visits_df, sample_conversions_df) -> DayArchiveProcessor:
    return DayArchiveProcessor(Period.day(archive_day), sample_visits_df, sample_conversions_df)


@pytest_asyncio.fixture
async def test_engine():
    """In-memory archive database"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Database session rolled back after each test"""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()
