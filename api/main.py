"""Main FastAPI application for the treasury API."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute

from api.dependencies import get_service, set_service
from api.errors import treasury_error_handler
from api.models import IndexResponse
from api.routes import recycle, status, transactions, transfers
from config import TreasuryConfig
from core.errors import TreasuryError
from service import TreasuryService

logger = logging.getLogger(__name__)

API_NAME = "Unified Earnings & Withdrawal API"
API_VERSION = "2.1.0"


def create_app(service: Optional[TreasuryService] = None) -> FastAPI:
    """Build the API.

    Args:
        service: Pre-built service; when omitted one is created from the
            environment at startup
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle."""
        # Startup
        logger.info("Starting treasury API...")

        treasury = service or TreasuryService(TreasuryConfig.load())
        set_service(treasury)
        await treasury.start()

        logger.info("Treasury API started successfully")

        yield

        # Shutdown
        logger.info("Stopping treasury API...")
        await treasury.stop()
        set_service(None)
        logger.info("Treasury API stopped")

    app = FastAPI(
        title=API_NAME,
        description="Earnings ledger and treasury withdrawals over a failover RPC pool",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TreasuryError, treasury_error_handler)

    # Include routers
    app.include_router(status.router)
    app.include_router(transfers.router)
    app.include_router(recycle.router)
    app.include_router(transactions.router)

    @app.get("/", response_model=IndexResponse)
    async def root():
        """Describe the service and list its routes."""
        treasury = get_service()
        routes = {"GET": [], "POST": []}
        for route in app.routes:
            if isinstance(route, APIRoute):
                for method in ("GET", "POST"):
                    if method in route.methods:
                        routes[method].append(route.path)

        return IndexResponse(
            name=API_NAME,
            version=API_VERSION,
            status="online",
            coinbaseWallet=treasury.config.coinbase_address,
            treasuryWallet=treasury.treasury_address,
            endpoints=routes,
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8080,
        reload=False,
        log_level="info"
    )
