from pydantic import BaseModel
from typing import List
from enum import Enum


class DateRange(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class DashboardStats(BaseModel):
    total_revenue: float
    total_cost: float
    net_profit: float
    total_repairs: int


class DayProfit(BaseModel):
    day: str
    profit: float


class ModelCount(BaseModel):
    name: str
    count: int


class IssueCount(BaseModel):
    issue: str
    count: int


class DashboardSummary(BaseModel):
    range: DateRange
    stats: DashboardStats
    weekly_profits: List[DayProfit]
    popular_models: List[ModelCount]
    common_issues: List[IssueCount]
