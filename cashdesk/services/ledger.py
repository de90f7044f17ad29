"""
Movement Ledger.

Records, edits and removes movements of an OPEN session. Every mutation first
runs ``crud_cash.lock_open_session`` in the same transaction as the write, so
the OPEN check and the write commit together and a concurrent close either
happens before (the write fails with ``SessionClosedError``) or after.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from cashdesk.crud import cash as crud_cash
from cashdesk.exceptions import NotFoundError, SessionClosedError, ValidationError
from cashdesk.models import CashMovement, MovementCategory, MovementKind
from cashdesk.utils.clock import utcnow
from cashdesk.utils.money import to_money

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("kind", "amount", "description", "category", "notes")


def _coerce_enum(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}") from None


def _validate_amount(value):
    amount = to_money(value)
    if amount <= 0:
        raise ValidationError("amount must be greater than zero")
    return amount


def _validate_description(value) -> str:
    description = (value or "").strip()
    if not description:
        raise ValidationError("description is required")
    return description


class MovementLedger:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def _guard_open(self, session_id: int) -> None:
        if crud_cash.lock_open_session(self.db, session_id):
            return
        self.db.rollback()
        if crud_cash.get_session(self.db, session_id) is None:
            raise NotFoundError("Cash session not found.")
        raise SessionClosedError("Movements of a closed cash session cannot be changed.")

    def add_movement(
        self,
        session_id: int,
        kind,
        amount,
        description: str,
        category=None,
        notes: Optional[str] = None,
        linked_order_id: Optional[str] = None,
    ) -> CashMovement:
        self._guard_open(session_id)
        try:
            movement = CashMovement(
                session_id=session_id,
                kind=_coerce_enum(MovementKind, kind, "kind"),
                amount=_validate_amount(amount),
                description=_validate_description(description),
                category=_coerce_enum(MovementCategory, category or MovementCategory.OTHER, "category"),
                notes=notes,
                linked_order_id=linked_order_id,
                occurred_at=self.clock(),
            )
            self.db.add(movement)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(movement)
        logger.info(
            "movement %s added to session %s: %s %s (%s)",
            movement.id, session_id, movement.kind.value, movement.amount, movement.category.value,
        )
        return movement

    def update_movement(self, session_id: int, movement_id: int, **fields) -> CashMovement:
        unknown = set(fields) - set(MUTABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        self._guard_open(session_id)
        try:
            movement = self._owned_movement(session_id, movement_id)

            changes = {}
            if "kind" in fields:
                changes["kind"] = _coerce_enum(MovementKind, fields["kind"], "kind")
            if "amount" in fields:
                changes["amount"] = _validate_amount(fields["amount"])
            if "description" in fields:
                changes["description"] = _validate_description(fields["description"])
            if "category" in fields:
                changes["category"] = _coerce_enum(
                    MovementCategory, fields["category"] or MovementCategory.OTHER, "category"
                )
            if "notes" in fields:
                changes["notes"] = fields["notes"]

            for key, value in changes.items():
                setattr(movement, key, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(movement)
        logger.info("movement %s of session %s updated: %s", movement_id, session_id, sorted(changes))
        return movement

    def delete_movement(self, session_id: int, movement_id: int) -> None:
        self._guard_open(session_id)
        try:
            movement = self._owned_movement(session_id, movement_id)
            self.db.delete(movement)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("movement %s of session %s deleted", movement_id, session_id)

    def _owned_movement(self, session_id: int, movement_id: int) -> CashMovement:
        movement = crud_cash.get_movement(self.db, movement_id)
        if movement is None or movement.session_id != session_id:
            raise NotFoundError("Movement not found.")
        return movement
