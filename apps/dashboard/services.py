"""Dashboard figures computed from the repair read model.

Every function here is pure: it takes the list produced by
``RepairService.list_repairs`` (dicts with ``repair_parts`` and a resolved
``model``) and a reference time.
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from fastapi import Depends

from apps.dashboard.schemas import DateRange
from apps.repairs.models import RepairStatus
from apps.repairs.services import RepairService, get_repair_service
from core.config import Settings, settings

# Sunday first, as the dashboard chart shows them
WEEKDAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
UNKNOWN = "unknown"
TOP_LIMIT = 5


def filter_by_range(repairs: List[Dict], date_range: DateRange, now: datetime) -> List[Dict]:
    if date_range == DateRange.TODAY:
        return [r for r in repairs if r["created_at"].date() == now.date()]
    if date_range == DateRange.WEEK:
        since = now - timedelta(days=7)
        return [r for r in repairs if r["created_at"] >= since]
    if date_range == DateRange.MONTH:
        since = now - timedelta(days=30)
        return [r for r in repairs if r["created_at"] >= since]
    return list(repairs)


def estimated_cost(repair: Dict, parts_ratio: float, labor_ratio: float) -> float:
    parts_cost = sum(
        part["quantity_used"] * part["price_at_time"] * parts_ratio
        for part in repair.get("repair_parts") or []
    )
    return parts_cost + (repair.get("labor_cost") or 0) * labor_ratio


def calculate_stats(repairs: List[Dict], parts_ratio: float, labor_ratio: float) -> Dict:
    total_revenue = sum(r.get("total_cost") or 0 for r in repairs)
    total_cost = sum(estimated_cost(r, parts_ratio, labor_ratio) for r in repairs)
    return {
        "total_revenue": total_revenue,
        "total_cost": total_cost,
        "net_profit": total_revenue - total_cost,
        "total_repairs": len(repairs),
    }


def weekly_profits(repairs: List[Dict], now: datetime) -> List[Dict]:
    """Profit of completed repairs created in the last 7 days, by creation weekday."""
    totals = [0.0] * 7
    since = now - timedelta(days=7)
    for repair in repairs:
        if repair["created_at"] < since or repair["status"] != RepairStatus.COMPLETED:
            continue
        # datetime.weekday() is Monday-based
        totals[(repair["created_at"].weekday() + 1) % 7] += repair.get("profit") or 0
    return [{"day": day, "profit": profit} for day, profit in zip(WEEKDAYS, totals)]


def popular_models(repairs: List[Dict], limit: int = TOP_LIMIT) -> List[Dict]:
    counts = Counter(r["model"]["name"] if r.get("model") else UNKNOWN for r in repairs)
    return [{"name": name, "count": count} for name, count in counts.most_common(limit)]


def common_issues(repairs: List[Dict], limit: int = TOP_LIMIT) -> List[Dict]:
    counts = Counter(r.get("issue_type") or UNKNOWN for r in repairs)
    return [{"issue": issue, "count": count} for issue, count in counts.most_common(limit)]


class DashboardService:
    def __init__(self, repair_service: RepairService, config: Settings = settings):
        self.repair_service = repair_service
        self.config = config

    def get_summary(self, date_range: DateRange = DateRange.MONTH, now: Optional[datetime] = None) -> Dict:
        now = now or datetime.utcnow()
        repairs = self.repair_service.list_repairs()
        selected = filter_by_range(repairs, date_range, now)
        return {
            "range": date_range,
            "stats": calculate_stats(
                selected, self.config.PARTS_COST_RATIO, self.config.LABOR_COST_RATIO
            ),
            # The weekly chart always looks at the last 7 days
            "weekly_profits": weekly_profits(repairs, now),
            "popular_models": popular_models(selected),
            "common_issues": common_issues(selected),
        }


# Dependency injection
def get_dashboard_service(repair_service: RepairService = Depends(get_repair_service)) -> DashboardService:
    return DashboardService(repair_service)
