from decimal import Decimal

from pydantic import BaseModel


class MonthlyVisitsOut(BaseModel):
    month: str
    visits: int


class RevenuePointOut(BaseModel):
    month: str
    revenue: Decimal
    outstanding: Decimal


class DashboardStatsOut(BaseModel):
    total_patients: int
    monthly_revenue: Decimal
    outstanding_balance: Decimal
    todays_visits: int
    monthly_visit_trends: list[MonthlyVisitsOut]
    revenue_data: list[RevenuePointOut]
