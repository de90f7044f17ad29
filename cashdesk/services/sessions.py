"""
Session Manager.

Owns the OPEN -> CLOSED lifecycle of the cash drawer and the rule that at most
one session is OPEN system-wide. Within a process the check-then-insert runs
under ``_open_lock``; across processes the partial unique index
``uq_cash_sessions_single_open`` rejects the second insert, which surfaces
here as ``ConflictError``.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cashdesk.crud import cash as crud_cash
from cashdesk.exceptions import (
    AlreadyClosedError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from cashdesk.models import CashSession, CashSessionStatus, MovementKind
from cashdesk.utils.clock import utcnow
from cashdesk.utils.money import to_money

logger = logging.getLogger(__name__)

_open_lock = threading.Lock()

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class SessionStats:
    opening_balance: Decimal
    total_inflow: Decimal
    total_outflow: Decimal
    current_balance: Decimal
    movements_today: int


class SessionManager:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def open_session(self, opening_balance, notes: Optional[str], owner_id: int) -> CashSession:
        opening_balance = to_money(opening_balance, "opening_balance")
        if opening_balance < 0:
            raise ValidationError("opening_balance cannot be negative")

        with _open_lock:
            # 1. Validar que no exista otra caja abierta
            if crud_cash.get_open_session(self.db):
                logger.warning("open rejected for user %s: a cash session is already open", owner_id)
                raise ConflictError("A cash session is already open. Close it before opening a new one.")

            # 2. Crear sesión
            session = CashSession(
                user_id=owner_id,
                status=CashSessionStatus.OPEN,
                opening_balance=opening_balance,
                notes=notes,
                opened_at=self.clock(),
                revision=0,
            )
            self.db.add(session)
            try:
                self.db.commit()
            except IntegrityError as exc:
                # Otro proceso ganó la carrera; el índice parcial lo detuvo
                self.db.rollback()
                logger.warning("open rejected for user %s by the single-open index", owner_id)
                raise ConflictError("A cash session is already open. Close it before opening a new one.") from exc

        self.db.refresh(session)
        logger.info("cash session %s opened by user %s with %s", session.id, owner_id, opening_balance)
        return session

    def close_session(
        self,
        session_id: int,
        closing_balance,
        requester_id: int,
        notes: Optional[str] = None,
    ) -> CashSession:
        session = self.get_session(session_id)

        if session.status == CashSessionStatus.CLOSED:
            raise AlreadyClosedError("This cash session is already closed.")
        if session.user_id != requester_id:
            raise ForbiddenError("You are not allowed to close this cash session.")

        closing_balance = to_money(closing_balance, "closing_balance")
        if closing_balance < 0:
            raise ValidationError("closing_balance cannot be negative")

        if not crud_cash.mark_closed(self.db, session_id, self.clock(), closing_balance, notes):
            self.db.rollback()
            raise AlreadyClosedError("This cash session is already closed.")
        self.db.commit()
        self.db.refresh(session)

        logger.info("cash session %s closed by user %s with %s", session_id, requester_id, closing_balance)
        return session

    def get_open_session(self) -> Optional[CashSession]:
        return crud_cash.get_open_session(self.db)

    def get_session(self, session_id: int) -> CashSession:
        session = crud_cash.get_session(self.db, session_id)
        if session is None:
            raise NotFoundError("Cash session not found.")
        return session

    def get_active_session(self, recent: int = 10) -> Tuple[CashSession, list]:
        """The open session plus its ``recent`` newest movements."""
        session = self.get_open_session()
        if session is None:
            raise NotFoundError("No active cash session.")
        return session, crud_cash.recent_movements(self.db, session.id, limit=recent)

    def list_sessions(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[CashSessionStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Tuple[List[CashSession], int]:
        if page < 1:
            raise ValidationError("page must be >= 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if date_from and date_to and date_from > date_to:
            raise ValidationError("date_from must not be after date_to")

        opened_from = datetime.combine(date_from, time.min) if date_from else None
        opened_before = datetime.combine(date_to + timedelta(days=1), time.min) if date_to else None

        return crud_cash.list_sessions(
            self.db,
            skip=(page - 1) * limit,
            limit=limit,
            status=status,
            opened_from=opened_from,
            opened_before=opened_before,
        )

    def session_stats(self, session_id: int, today: Optional[date] = None) -> SessionStats:
        session = self.get_session(session_id)
        today = today or self.clock().date()

        total_inflow = Decimal("0.00")
        total_outflow = Decimal("0.00")
        movements_today = 0
        for mov in crud_cash.session_movements(self.db, session_id):
            if mov.kind == MovementKind.INFLOW:
                total_inflow += mov.amount
            else:
                total_outflow += mov.amount
            if mov.occurred_at.date() == today:
                movements_today += 1

        return SessionStats(
            opening_balance=session.opening_balance,
            total_inflow=total_inflow,
            total_outflow=total_outflow,
            current_balance=session.opening_balance + total_inflow - total_outflow,
            movements_today=movements_today,
        )
