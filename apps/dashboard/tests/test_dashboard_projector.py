from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from apps.dashboard.schemas import DateRange
from apps.dashboard.services import (
    DashboardService,
    calculate_stats,
    common_issues,
    estimated_cost,
    filter_by_range,
    popular_models,
    weekly_profits,
)
from apps.repairs.models import RepairStatus

# A Monday
NOW = datetime(2026, 10, 19, 12, 0)


def repair(
    days_ago: float = 0,
    status: RepairStatus = RepairStatus.COMPLETED,
    total_cost: float = 200.0,
    profit: float = 80.0,
    labor_cost: float = 100.0,
    parts=((2, 50.0),),
    model: str = "Galaxy S21",
    issue_type: str = "screen",
) -> dict:
    return {
        "created_at": NOW - timedelta(days=days_ago),
        "status": status,
        "total_cost": total_cost,
        "profit": profit,
        "labor_cost": labor_cost,
        "repair_parts": [{"quantity_used": q, "price_at_time": p} for q, p in parts],
        "model": {"name": model} if model else None,
        "issue_type": issue_type,
    }


def test_estimated_cost():
    # 2 * 50 * 0.7 + 100 * 0.5
    assert estimated_cost(repair(), 0.7, 0.5) == pytest.approx(120.0)
    assert estimated_cost(repair(parts=(), labor_cost=None), 0.7, 0.5) == 0


def test_calculate_stats():
    stats = calculate_stats([repair(), repair(total_cost=50, parts=(), labor_cost=40)], 0.7, 0.5)

    assert stats["total_revenue"] == 250
    assert stats["total_cost"] == pytest.approx(140.0)
    assert stats["net_profit"] == pytest.approx(110.0)
    assert stats["total_repairs"] == 2


def test_filter_by_range():
    repairs = [
        repair(days_ago=0.25),      # today
        repair(days_ago=0.6),       # yesterday evening
        repair(days_ago=6),
        repair(days_ago=20),
        repair(days_ago=45),
    ]

    assert len(filter_by_range(repairs, DateRange.TODAY, NOW)) == 1
    assert len(filter_by_range(repairs, DateRange.WEEK, NOW)) == 3
    assert len(filter_by_range(repairs, DateRange.MONTH, NOW)) == 4
    assert len(filter_by_range(repairs, DateRange.ALL, NOW)) == 5


def test_weekly_profits_bucket_by_creation_weekday():
    repairs = [
        repair(days_ago=0, profit=10),                                   # monday
        repair(days_ago=1, profit=20),                                   # sunday
        repair(days_ago=1, profit=5),                                    # sunday
        repair(days_ago=2, profit=99, status=RepairStatus.IN_PROGRESS),  # not completed
        repair(days_ago=10, profit=99),                                  # too old
    ]

    week = weekly_profits(repairs, NOW)

    assert [d["day"] for d in week] == [
        "sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"
    ]
    assert week[0]["profit"] == 25
    assert week[1]["profit"] == 10
    assert sum(d["profit"] for d in week) == 35


def test_weekly_profits_accept_stored_status_strings():
    assert weekly_profits([repair(status="completed", profit=7)], NOW)[1]["profit"] == 7


def test_top_lists():
    repairs = (
        [repair(model="iPhone 12", issue_type="battery")] * 3
        + [repair(model="Galaxy S21")] * 2
        + [repair(model=None, issue_type="")]
        + [repair(model=f"Model {i}") for i in range(5)]
    )

    models = popular_models(repairs)
    assert len(models) == 5
    assert models[0] == {"name": "iPhone 12", "count": 3}
    assert models[1] == {"name": "Galaxy S21", "count": 2}

    issues = common_issues(repairs)
    assert issues[0] == {"issue": "screen", "count": 7}
    assert {"issue": "unknown", "count": 1} in issues
    assert popular_models([repair(model=None)]) == [{"name": "unknown", "count": 1}]


class _Repairs:
    def __init__(self, repairs):
        self.repairs = repairs

    def list_repairs(self):
        return self.repairs


def test_summary_uses_range_for_stats_but_not_for_the_weekly_chart():
    service = DashboardService(_Repairs([repair(days_ago=0.1, profit=10), repair(days_ago=3, profit=30)]))

    summary = service.get_summary(DateRange.TODAY, now=NOW)

    assert summary["stats"]["total_repairs"] == 1
    assert sum(d["profit"] for d in summary["weekly_profits"]) == 40
    assert summary["popular_models"] == [{"name": "Galaxy S21", "count": 1}]
