# cashdesk/models/__init__.py

# 1. Base de datos (origen de la clase declarativa)
from cashdesk.database import Base

# 2. Operadores
from .users import User, Role

# 3. Caja y movimientos
from .cash import (
    CashSession,
    CashSessionStatus,
    CashMovement,
    MovementKind,
    MovementCategory,
)
