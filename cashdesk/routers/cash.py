# cashdesk/routers/cash.py
import math
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from cashdesk.database import get_db
from cashdesk.models import CashSessionStatus
from cashdesk.schemas.cash import (
    CashSessionClose,
    CashSessionCreate,
    CashSessionDetail,
    CashSessionPage,
    CashSessionRead,
    MovementCreate,
    MovementRead,
    MovementUpdate,
    SessionStatsRead,
)
from cashdesk.security import get_current_user, User
from cashdesk.services.ledger import MovementLedger
from cashdesk.services.sessions import SessionManager

router = APIRouter()


# --------------------------------------------------------------------------
# 1. SESIONES DE CAJA
# --------------------------------------------------------------------------
@router.get("/sessions", response_model=CashSessionPage)
def list_sessions(
    page: int = 1,
    limit: int = 10,
    status: Optional[CashSessionStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    items, total = SessionManager(db).list_sessions(
        page=page, limit=limit, status=status, date_from=date_from, date_to=date_to
    )
    return {
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


@router.get("/sessions/active", response_model=CashSessionDetail)
def get_active_session(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Open session with its 10 most recent movements (newest first)."""
    session, recent = SessionManager(db).get_active_session(recent=10)
    return CashSessionDetail(
        **CashSessionRead.model_validate(session).model_dump(),
        movements=[MovementRead.model_validate(m) for m in recent],
    )


@router.post("/sessions", response_model=CashSessionRead, status_code=status.HTTP_201_CREATED)
def open_session(
    session_in: CashSessionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return SessionManager(db).open_session(
        opening_balance=session_in.opening_balance,
        notes=session_in.notes,
        owner_id=current_user.id,
    )


@router.get("/sessions/{session_id}", response_model=CashSessionDetail)
def get_session(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return SessionManager(db).get_session(session_id)


@router.post("/sessions/{session_id}/close", response_model=CashSessionRead)
def close_session(
    session_id: int,
    close_data: CashSessionClose,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return SessionManager(db).close_session(
        session_id,
        closing_balance=close_data.closing_balance,
        requester_id=current_user.id,
        notes=close_data.notes,
    )


@router.get("/sessions/{session_id}/stats", response_model=SessionStatsRead)
def get_session_stats(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return SessionManager(db).session_stats(session_id)


# --------------------------------------------------------------------------
# 2. MOVIMIENTOS
# --------------------------------------------------------------------------
@router.post("/sessions/{session_id}/movements", response_model=MovementRead, status_code=status.HTTP_201_CREATED)
def add_movement(
    session_id: int,
    movement_in: MovementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return MovementLedger(db).add_movement(session_id, **movement_in.model_dump())


@router.put("/sessions/{session_id}/movements/{movement_id}", response_model=MovementRead)
def update_movement(
    session_id: int,
    movement_id: int,
    movement_in: MovementUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return MovementLedger(db).update_movement(session_id, movement_id, **movement_in.model_dump(exclude_unset=True))


@router.delete("/sessions/{session_id}/movements/{movement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_movement(
    session_id: int,
    movement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    MovementLedger(db).delete_movement(session_id, movement_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
