"""Sample records behind the fixed demo dashboard."""
from __future__ import annotations

from datetime import datetime, timedelta

from backend.schemas import (
    ActivityCreate,
    ChartDataCreate,
    MetricCreate,
    RegionCreate,
    TransactionCreate,
)

REVENUE_BY_WEEKDAY = [
    ("Mon", "12000"),
    ("Tue", "19000"),
    ("Wed", "15000"),
    ("Thu", "25000"),
    ("Fri", "22000"),
    ("Sat", "30000"),
    ("Sun", "28000"),
]

REVENUE_BY_CATEGORY = [
    ("Electronics", "85000"),
    ("Clothing", "65000"),
    ("Books", "45000"),
    ("Home", "55000"),
    ("Sports", "35000"),
]

CUSTOMER_MIX = [
    ("New Customers", "45"),
    ("Returning", "35"),
    ("VIP", "20"),
]


def sample_transactions() -> list[TransactionCreate]:
    return [
        TransactionCreate(
            order_id="#12847",
            customer_name="Jane Doe",
            customer_initials="JD",
            amount="297.45",
            status="completed",
            date=datetime(2023, 12, 15),
            category="electronics",
            region="north",
        ),
        TransactionCreate(
            order_id="#12846",
            customer_name="Mike Smith",
            customer_initials="MS",
            amount="145.20",
            status="pending",
            date=datetime(2023, 12, 15),
            category="clothing",
            region="europe",
        ),
        TransactionCreate(
            order_id="#12845",
            customer_name="Anna Brown",
            customer_initials="AB",
            amount="524.80",
            status="completed",
            date=datetime(2023, 12, 14),
            category="home",
            region="asia",
        ),
        TransactionCreate(
            order_id="#12844",
            customer_name="Chris Johnson",
            customer_initials="CJ",
            amount="89.95",
            status="failed",
            date=datetime(2023, 12, 14),
            category="books",
            region="latam",
        ),
    ]


def sample_metrics(now: datetime) -> list[MetricCreate]:
    headline = [
        ("Total Revenue", "$847,392", "12.5", "up"),
        ("New Customers", "2,847", "8.3", "up"),
        ("Conversion Rate", "3.24%", "-2.1", "down"),
        ("Avg Order Value", "$297.45", "5.7", "up"),
    ]
    return [
        MetricCreate(name=name, value=value, change=change, trend=trend, date=now)
        for name, value, change, trend in headline
    ]


def sample_regions() -> list[RegionCreate]:
    return [
        RegionCreate(code="US", name="United States", revenue="247000"),
        RegionCreate(code="CA", name="Canada", revenue="89000"),
        RegionCreate(code="UK", name="United Kingdom", revenue="67000"),
        RegionCreate(code="DE", name="Germany", revenue="45000"),
    ]


def sample_activities(now: datetime) -> list[ActivityCreate]:
    return [
        ActivityCreate(message="New order #12847 received", type="success", timestamp=now - timedelta(minutes=2)),
        ActivityCreate(message="Customer Jane D. registered", type="info", timestamp=now - timedelta(minutes=15)),
        ActivityCreate(message="Inventory alert for Electronics", type="warning", timestamp=now - timedelta(hours=1)),
        ActivityCreate(message="Marketing campaign launched", type="info", timestamp=now - timedelta(hours=3)),
    ]


def sample_chart_data(now: datetime) -> list[ChartDataCreate]:
    points = [("revenue", label, value) for label, value in REVENUE_BY_WEEKDAY]
    points += [("category", label, value) for label, value in REVENUE_BY_CATEGORY]
    points += [("customer", label, value) for label, value in CUSTOMER_MIX]
    return [ChartDataCreate(type=kind, label=label, value=value, date=now) for kind, label, value in points]
