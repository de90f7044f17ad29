# cashdesk/models/cash.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Enum, Index, text
from sqlalchemy.orm import relationship
from cashdesk.database import Base


class CashSessionStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class MovementKind(str, enum.Enum):
    INFLOW = "INFLOW"
    OUTFLOW = "OUTFLOW"


class MovementCategory(str, enum.Enum):
    SALES = "SALES"
    SERVICES = "SERVICES"
    PAYMENTS = "PAYMENTS"
    RECEIPTS = "RECEIPTS"
    EXPENSES = "EXPENSES"
    INVESTMENTS = "INVESTMENTS"
    OTHER = "OTHER"


class CashSession(Base):
    __tablename__ = "cash_sessions"
    __table_args__ = (
        # Solo puede existir una caja abierta en todo el sistema
        Index(
            "uq_cash_sessions_single_open",
            "status",
            unique=True,
            sqlite_where=text("status = 'OPEN'"),
            postgresql_where=text("status = 'OPEN'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Tiempos de operación (UTC)
    opened_at = Column(DateTime, nullable=False)
    closed_at = Column(DateTime, nullable=True)

    opening_balance = Column(Numeric(12, 2), nullable=False, default=0)
    closing_balance = Column(Numeric(12, 2), nullable=True)  # Contado por el operador

    status = Column(Enum(CashSessionStatus), nullable=False, default=CashSessionStatus.OPEN)
    notes = Column(String, nullable=True)

    # Contador de escrituras; cada mutación protegida lo incrementa
    revision = Column(Integer, nullable=False, default=0)

    user = relationship("User")
    movements = relationship(
        "CashMovement",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by=lambda: [CashMovement.occurred_at, CashMovement.id],
    )


class CashMovement(Base):
    __tablename__ = "cash_movements"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("cash_sessions.id"), nullable=False, index=True)

    kind = Column(Enum(MovementKind), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=False)
    category = Column(Enum(MovementCategory), nullable=False, default=MovementCategory.OTHER)
    notes = Column(String, nullable=True)

    # Referencia débil a una orden de servicio externa (sin FK)
    linked_order_id = Column(String, nullable=True)

    occurred_at = Column(DateTime, nullable=False, index=True)

    session = relationship("CashSession", back_populates="movements")
