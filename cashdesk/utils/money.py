from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from cashdesk.exceptions import ValidationError

CENT = Decimal("0.01")
# Numeric(12, 2): diez dígitos enteros
MAX_AMOUNT = Decimal("1e10")


def to_money(value, field: str = "amount") -> Decimal:
    """Coerces ``value`` to a Decimal rounded to cents. Floats go through ``str`` first."""
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a decimal number") from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    try:
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field} is out of range") from None
    if abs(amount) >= MAX_AMOUNT:
        raise ValidationError(f"{field} is out of range")
    return amount
