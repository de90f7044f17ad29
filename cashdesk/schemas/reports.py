from pydantic import BaseModel
from typing import List
import datetime
from decimal import Decimal

from cashdesk.models import MovementCategory


class DailyFlow(BaseModel):
    date: datetime.date
    inflow_total: Decimal
    outflow_total: Decimal
    net_balance: Decimal  # Del día, no acumulado


class CategoryTotal(BaseModel):
    category: MovementCategory
    total: Decimal
    color: str


class ReportSummary(BaseModel):
    total_inflow: Decimal
    total_outflow: Decimal
    net_balance: Decimal
    movement_count: int
    average_ticket: Decimal


class CashFlowReport(BaseModel):
    date_from: datetime.date
    date_to: datetime.date
    daily_flow: List[DailyFlow]
    inflow_by_category: List[CategoryTotal]
    outflow_by_category: List[CategoryTotal]
    summary: ReportSummary
