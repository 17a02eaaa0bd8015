"""
Tests for dashboard statistics aggregation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from backend.app.models.blog import Blog
from backend.app.models.enums import ProductType
from backend.app.models.product import Product
from backend.app.services.statistics import (
    StatisticsService,
    compute_percentage_change,
    last_12_months,
    month_start,
    trend_for,
)

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


# TEST 1: Percentage change

def test_percentage_change_with_baseline():
    assert compute_percentage_change(15, 10) == 50.0
    assert compute_percentage_change(5, 10) == -50.0
    assert compute_percentage_change(1, 3) == -66.7


def test_percentage_change_without_baseline():
    assert compute_percentage_change(4, 0) == 100
    assert compute_percentage_change(0, 0) == 0


def test_zero_change_trends_up():
    assert trend_for(0) == "up"
    assert trend_for(12.5) == "up"
    assert trend_for(-0.1) == "down"


# TEST 2: Month windows

def test_month_start_crosses_year_boundary():
    assert month_start(datetime(2026, 2, 10, tzinfo=timezone.utc), 3) == datetime(2025, 11, 1, tzinfo=timezone.utc)


def test_last_12_months_labels_oldest_first():
    months = last_12_months(NOW)
    assert len(months) == 12
    assert months[0][0] == "Jul 2025"
    assert months[-1][0] == "Jun 2026"
    assert months[-1][2] == datetime(2026, 7, 1, tzinfo=timezone.utc)


# TEST 3: Aggregation against the database

@pytest.fixture
async def seeded(db_session):
    def blog(days_ago, hours_ago=0):
        created = NOW - timedelta(days=days_ago, hours=hours_ago)
        return Blog(title=f"Blog {days_ago}", content="", images=[], created_at=created, updated_at=created)

    db_session.add_all([
        blog(0, 0.5),   # last hour
        blog(3),        # last week
        blog(20),       # last month
        blog(40),       # month before
        blog(50),       # month before
        blog(400),
    ])
    db_session.add(Product(
        name="Gauze Pads",
        product_type=ProductType.MEDICAL_SUPPLIES,
        images=[],
        features=[],
        created_at=NOW - timedelta(minutes=10),
        updated_at=NOW - timedelta(minutes=10),
    ))
    await db_session.commit()


@pytest.mark.asyncio
async def test_entity_stats(db_session, seeded):
    stats = await StatisticsService.get_entity_stats(db_session, Blog, NOW)

    assert stats["total"] == 6
    assert stats["last_week"] == 2
    assert stats["last_month"] == 3
    assert stats["percentage_change"] == 50.0
    assert stats["trend"] == "up"


@pytest.mark.asyncio
async def test_activity_stats(db_session, seeded):
    activity = await StatisticsService.get_activity_stats(db_session, NOW)

    assert activity["blogs"] == 1
    assert activity["products"] == 1
    assert activity["users"] == 0
    assert activity["total"] == 2
    assert activity["previous_hour"] == 0
    assert activity["change"] == 2


@pytest.mark.asyncio
async def test_overview_counts_per_month(db_session, seeded):
    overview = await StatisticsService.get_overview(db_session, NOW)

    assert overview["labels"][-1] == "Jun 2026"
    datasets = {dataset["name"]: dataset["data"] for dataset in overview["datasets"]}
    assert set(datasets) == {"Users", "Blogs", "Products"}
    # June: 0.5h, 3d ago; May: 20d, 40d ago; April: 50d ago
    assert datasets["Blogs"][-1] == 2
    assert datasets["Blogs"][-2] == 2
    assert datasets["Blogs"][-3] == 1
    assert sum(datasets["Blogs"]) == 5
    assert datasets["Products"][-1] == 1


@pytest.mark.asyncio
async def test_recent_activity_lists_newest_first(db_session, seeded, staff):
    activity = await StatisticsService.get_recent_activity(db_session)

    assert len(activity["blogs"]) == 5
    assert activity["blogs"][0]["title"] == "Blog 0"
    assert activity["products"][0]["type"] == "product"
    assert activity["users"][0]["email"] == "staff@mhrhci.ph"
    assert activity["users"][0]["avatar"].startswith("https://www.gravatar.com/avatar/")
