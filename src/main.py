"""Asset ledger FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from src.core.config import settings
from src.core.exceptions import AppException
from src.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    sqlalchemy_db_error_handler,
    stale_data_handler,
    validation_exception_handler,
)
from src.modules.alerts.router import router as alerts_router
from src.modules.allocations.router import router as allocations_router
from src.modules.assets.router import router as assets_router
from src.modules.deletions.router import router as deletions_router
from src.modules.employees.router import router as employees_router
from src.modules.goods_issue.router import router as goods_issue_router
from src.modules.receipts.router import router as receipts_router
from src.modules.warehouses.router import router as warehouses_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Asset ledger starting (env=%s)", settings.app_env)
    yield
    logger.info("Asset ledger stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="Asset Ledger",
        description="Inventory and asset ledger: receipts, allocations, goods issue, deletion and restore",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StaleDataError, stale_data_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_db_error_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(assets_router, prefix="/api/v1")
    app.include_router(employees_router, prefix="/api/v1")
    app.include_router(warehouses_router, prefix="/api/v1")
    app.include_router(allocations_router, prefix="/api/v1")
    app.include_router(goods_issue_router, prefix="/api/v1")
    app.include_router(receipts_router, prefix="/api/v1")
    app.include_router(deletions_router, prefix="/api/v1")
    app.include_router(alerts_router, prefix="/api/v1")

    return app


app = create_app()
