from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from cashdesk.config import settings
from cashdesk.database import engine
from cashdesk.exceptions import CashDeskError
from cashdesk.logging_config import configure_logging
from cashdesk.models import Base
from cashdesk.routers import auth, cash, reports

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 1. Creación automática de tablas
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="Cashdesk",
    description="Cash drawer sessions, movement ledger and cash-flow reports",
    version="1.0.0",
    lifespan=lifespan,
)

# 2. Configuración de CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 3. Registro de routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(cash.router, prefix="/api/cash", tags=["Cash sessions"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])


# 4. Manejo de errores
@app.exception_handler(CashDeskError)
async def cashdesk_exception_handler(request: Request, exc: CashDeskError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(404)
async def not_found_exception_handler(request: Request, exc: StarletteHTTPException):
    # Rutas inexistentes con el mismo formato que NotFoundError
    return JSONResponse(status_code=404, content={"detail": exc.detail, "code": "NOT_FOUND"})
