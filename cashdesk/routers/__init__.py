# cashdesk/routers/__init__.py

# Expone los módulos para que "from cashdesk.routers import cash" funcione
from . import auth
from . import cash
from . import reports
