# cashdesk/routers/reports.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from cashdesk.database import get_db
from cashdesk.schemas.reports import CashFlowReport
from cashdesk.security import get_current_user, User
from cashdesk.services.reports import ReportAggregator
from cashdesk.utils.clock import utcnow
from cashdesk.utils.exporters import export_report

router = APIRouter()


@router.get("/cash-flow", response_model=CashFlowReport)
def get_cash_flow_report(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Daily flow, category breakdown and totals. Defaults to the last 30 days."""
    return ReportAggregator(db).build_cash_flow_report(date_from, date_to)


@router.get("/cash-flow/export")
def export_cash_flow_report(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    fmt: str = Query("pdf", alias="format"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    now = utcnow()
    aggregator = ReportAggregator(db, clock=lambda: now)
    report, movements = aggregator.report_with_movements(date_from, date_to)

    exported = export_report(report, movements, fmt, generated_at=now)
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'}
    )
