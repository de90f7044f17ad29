# schemas/cash.py
from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from cashdesk.models import CashSessionStatus, MovementCategory, MovementKind


# --- Sesiones ---
class CashSessionCreate(BaseModel):
    opening_balance: Decimal
    notes: Optional[str] = None


class CashSessionClose(BaseModel):
    closing_balance: Decimal  # Lo que el operador contó físicamente
    notes: Optional[str] = None


class CashSessionRead(BaseModel):
    id: int
    user_id: int
    status: CashSessionStatus
    opened_at: datetime
    closed_at: Optional[datetime] = None
    opening_balance: Decimal
    closing_balance: Optional[Decimal] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


# --- Movimientos ---
class MovementCreate(BaseModel):
    kind: MovementKind
    amount: Decimal
    description: str
    category: MovementCategory = MovementCategory.OTHER
    notes: Optional[str] = None
    linked_order_id: Optional[str] = None


class MovementUpdate(BaseModel):
    kind: Optional[MovementKind] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    category: Optional[MovementCategory] = None
    notes: Optional[str] = None


class MovementRead(BaseModel):
    id: int
    session_id: int
    kind: MovementKind
    amount: Decimal
    description: str
    category: MovementCategory
    notes: Optional[str] = None
    linked_order_id: Optional[str] = None
    occurred_at: datetime

    class Config:
        from_attributes = True


class CashSessionDetail(CashSessionRead):
    movements: List[MovementRead] = []


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class CashSessionPage(BaseModel):
    data: List[CashSessionRead]
    pagination: Pagination


class SessionStatsRead(BaseModel):
    opening_balance: Decimal
    total_inflow: Decimal
    total_outflow: Decimal
    current_balance: Decimal
    movements_today: int

    class Config:
        from_attributes = True
