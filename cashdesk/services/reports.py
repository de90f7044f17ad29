"""
Report Aggregator.

Read-only summaries of movements over an inclusive date range, independent of
session boundaries. Amounts are accumulated as ``Decimal``; the output is a
pure function of the movements in the window.
"""
import logging
import time as _time
from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from cashdesk.config import settings
from cashdesk.crud import cash as crud_cash
from cashdesk.exceptions import ValidationError
from cashdesk.models import CashMovement, MovementCategory, MovementKind
from cashdesk.utils.clock import utcnow

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

PALETTE = [
    "#3b82f6",
    "#22c55e",
    "#f59e0b",
    "#ef4444",
    "#8b5cf6",
    "#06b6d4",
    "#f97316",
    "#84cc16",
    "#ec4899",
    "#6366f1",
]

_CATEGORY_ORDER = list(MovementCategory)


def category_color(category: MovementCategory) -> str:
    """Palette colour fixed by the category's position in the enum."""
    return PALETTE[_CATEGORY_ORDER.index(category) % len(PALETTE)]


def resolve_window(
    date_from: Optional[date],
    date_to: Optional[date],
    today: date,
    default_days: int = None,
) -> Tuple[date, date]:
    """
    Inclusive ``(from, to)`` dates of a report.

    ``to`` defaults to ``today`` and ``from`` to ``default_days`` before ``to``.
    """
    if default_days is None:
        default_days = settings.REPORT_DEFAULT_DAYS
    date_to = date_to or today
    date_from = date_from or (date_to - timedelta(days=default_days))
    if date_from > date_to:
        raise ValidationError("date_from must not be after date_to")
    return date_from, date_to


def _read_with_retry(db: Session, fn: Callable, *args):
    attempts = max(1, settings.READ_RETRIES)
    for attempt in range(1, attempts + 1):
        try:
            return fn(db, *args)
        except OperationalError:
            db.rollback()
            if attempt == attempts:
                raise
            logger.warning("transient storage error reading movements (attempt %s/%s)", attempt, attempts)
            _time.sleep(0.05 * attempt)


class ReportAggregator:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def list_movements(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        today: Optional[date] = None,
    ) -> List[CashMovement]:
        date_from, date_to = resolve_window(date_from, date_to, today or self.clock().date())
        return self._fetch(date_from, date_to)

    def build_cash_flow_report(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        today: Optional[date] = None,
    ) -> dict:
        report, _ = self.report_with_movements(date_from, date_to, today)
        return report

    def report_with_movements(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Tuple[dict, List[CashMovement]]:
        """The report plus the movement listing it was built from (one snapshot read)."""
        date_from, date_to = resolve_window(date_from, date_to, today or self.clock().date())
        movements = self._fetch(date_from, date_to)
        logger.info("cash-flow report %s..%s over %s movements", date_from, date_to, len(movements))
        return summarize(movements, date_from, date_to), movements

    def _fetch(self, date_from: date, date_to: date) -> List[CashMovement]:
        start = datetime.combine(date_from, time.min)
        end = datetime.combine(date_to + timedelta(days=1), time.min)
        return _read_with_retry(self.db, crud_cash.movements_in_range, start, end)


def summarize(movements: List[CashMovement], date_from: date, date_to: date) -> dict:
    """Aggregates already-ordered movements into the cash-flow report shape."""
    # 1. Flujo diario
    daily: "OrderedDict[date, Dict[str, Decimal]]" = OrderedDict()
    by_category = {
        MovementKind.INFLOW: {},
        MovementKind.OUTFLOW: {},
    }
    total_inflow = ZERO
    total_outflow = ZERO

    for mov in movements:
        day = mov.occurred_at.date()
        bucket = daily.setdefault(day, {"inflow": ZERO, "outflow": ZERO})

        if mov.kind == MovementKind.INFLOW:
            bucket["inflow"] += mov.amount
            total_inflow += mov.amount
        else:
            bucket["outflow"] += mov.amount
            total_outflow += mov.amount

        # 2. Totales por categoría
        totals = by_category[mov.kind]
        totals[mov.category] = totals.get(mov.category, ZERO) + mov.amount

    daily_flow = [
        {
            "date": day,
            "inflow_total": values["inflow"],
            "outflow_total": values["outflow"],
            "net_balance": values["inflow"] - values["outflow"],
        }
        for day, values in sorted(daily.items())
    ]

    def category_rows(totals):
        return [
            {"category": cat, "total": totals[cat], "color": category_color(cat)}
            for cat in _CATEGORY_ORDER
            if cat in totals
        ]

    # 3. Resumen
    count = len(movements)
    if count:
        average_ticket = ((total_inflow + total_outflow) / count).quantize(CENT, rounding=ROUND_HALF_UP)
    else:
        average_ticket = ZERO

    return {
        "date_from": date_from,
        "date_to": date_to,
        "daily_flow": daily_flow,
        "inflow_by_category": category_rows(by_category[MovementKind.INFLOW]),
        "outflow_by_category": category_rows(by_category[MovementKind.OUTFLOW]),
        "summary": {
            "total_inflow": total_inflow,
            "total_outflow": total_outflow,
            "net_balance": total_inflow - total_outflow,
            "movement_count": count,
            "average_ticket": average_ticket,
        },
    }
