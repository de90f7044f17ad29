"""
Session and movement stores.

Thin query helpers over the ``cash_sessions`` and ``cash_movements`` tables.
They never commit; the services own the transaction boundary.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from cashdesk.models import CashSession, CashSessionStatus, CashMovement


# --------------------------------------------------------------------------
# Sesiones
# --------------------------------------------------------------------------
def get_session(db: Session, session_id: int) -> Optional[CashSession]:
    return db.query(CashSession).filter(CashSession.id == session_id).first()


def get_open_session(db: Session) -> Optional[CashSession]:
    return db.query(CashSession).filter(CashSession.status == CashSessionStatus.OPEN).first()


def list_sessions(
    db: Session,
    skip: int = 0,
    limit: int = 10,
    status: Optional[CashSessionStatus] = None,
    opened_from: Optional[datetime] = None,
    opened_before: Optional[datetime] = None,
) -> Tuple[List[CashSession], int]:
    query = db.query(CashSession)

    if status:
        query = query.filter(CashSession.status == status)
    if opened_from:
        query = query.filter(CashSession.opened_at >= opened_from)
    if opened_before:
        query = query.filter(CashSession.opened_at < opened_before)

    total = query.count()
    items = query.order_by(desc(CashSession.opened_at), desc(CashSession.id)).offset(skip).limit(limit).all()
    return items, total


def lock_open_session(db: Session, session_id: int) -> bool:
    """
    Bumps ``revision`` on the session only while it is OPEN.

    The UPDATE takes the row (SQLite: database) write lock inside the caller's
    transaction, so a concurrent close cannot commit in between the status
    check and the write that follows. Returns False when nothing matched.
    """
    updated = (
        db.query(CashSession)
        .filter(CashSession.id == session_id, CashSession.status == CashSessionStatus.OPEN)
        .update({CashSession.revision: CashSession.revision + 1}, synchronize_session=False)
    )
    return updated == 1


def mark_closed(db: Session, session_id: int, closed_at: datetime, closing_balance, notes: Optional[str] = None) -> bool:
    """Compare-and-set OPEN -> CLOSED. Returns False if the session was no longer OPEN."""
    values = {
        CashSession.status: CashSessionStatus.CLOSED,
        CashSession.closed_at: closed_at,
        CashSession.closing_balance: closing_balance,
        CashSession.revision: CashSession.revision + 1,
    }
    if notes is not None:
        values[CashSession.notes] = notes

    updated = (
        db.query(CashSession)
        .filter(CashSession.id == session_id, CashSession.status == CashSessionStatus.OPEN)
        .update(values, synchronize_session=False)
    )
    return updated == 1


# --------------------------------------------------------------------------
# Movimientos
# --------------------------------------------------------------------------
def get_movement(db: Session, movement_id: int) -> Optional[CashMovement]:
    return db.query(CashMovement).filter(CashMovement.id == movement_id).first()


def session_movements(db: Session, session_id: int) -> List[CashMovement]:
    return (
        db.query(CashMovement)
        .filter(CashMovement.session_id == session_id)
        .order_by(CashMovement.occurred_at, CashMovement.id)
        .all()
    )


def recent_movements(db: Session, session_id: int, limit: int = 10) -> List[CashMovement]:
    return (
        db.query(CashMovement)
        .filter(CashMovement.session_id == session_id)
        .order_by(desc(CashMovement.occurred_at), desc(CashMovement.id))
        .limit(limit)
        .all()
    )


def movements_in_range(db: Session, start: datetime, end: datetime) -> List[CashMovement]:
    """Movements with ``start <= occurred_at < end``, oldest first, ties by insertion."""
    return (
        db.query(CashMovement)
        .filter(CashMovement.occurred_at >= start, CashMovement.occurred_at < end)
        .order_by(CashMovement.occurred_at, CashMovement.id)
        .all()
    )
