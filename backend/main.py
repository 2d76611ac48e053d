from fastapi import FastAPI, Request, status
import uvicorn
import structlog
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from db.database import create_db_and_tables
from routers.textile import router as textile_router
from core.errors import (
    InsufficientStockError,
    NegativeBalanceError,
    TextileLedgerError,
    UnknownLocationOrItemError,
)
from core.logging_config import configure_logging
from contextlib import asynccontextmanager

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Textile Ledger API",
    description="Linen, towel and robe stock across warehouse, laundry and guest units",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_for(exc: TextileLedgerError) -> int:
    if isinstance(exc, (InsufficientStockError, NegativeBalanceError)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, UnknownLocationOrItemError):
        return 422
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(TextileLedgerError)
async def textile_ledger_error_handler(request: Request, exc: TextileLedgerError):
    code = _status_for(exc)
    logger.warning("Textile operation rejected", path=request.url.path, status=code, error=type(exc).__name__)
    return JSONResponse(status_code=code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Textile request failed", path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": f"Internal error: {exc}"})


# Textile stock routes
app.include_router(textile_router, prefix="/textile", tags=["textile"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
