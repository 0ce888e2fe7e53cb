"""FastAPI application entry point for the Deal Escrow ledger.

Lifecycle:
    1. Startup: Initialize logging and the database, build the ledger with its
       simulated assets, write the bootstrap arbiters to the registry table.
    2. Running: Serve the REST API at /api/v1/* on a single Uvicorn process.
    3. Shutdown: Close database connections gracefully.

The ledger lives in memory on app.state; the database is an audit and read
projection of it and is not replayed at startup. A database still holding
deals from an earlier run is refused unless DATABASE_RESET_ON_STARTUP is set.

Run with:
    uv run uvicorn deal_escrow.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from deal_escrow import __version__
from deal_escrow.config import get_settings
from deal_escrow.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings = get_settings()

    # 1. Setup structured logging
    setup_logging(
        log_level=settings.app_log_level,
        json_logs=not settings.is_development,
    )
    logger = get_logger(__name__)
    logger.info("app.starting", env=settings.app_env, debug=settings.app_debug)

    # 2. Initialize database
    from deal_escrow.infrastructure.database.engine import (
        _get_session_factory,
        close_db,
        init_db,
    )

    await init_db()

    # 3. Build the ledger over the simulated assets
    from deal_escrow.infrastructure.assets import (
        SimulatedNativeBank,
        SimulatedToken,
        TokenDirectory,
    )
    from deal_escrow.services.escrow_ledger import build_ledger
    from deal_escrow.services.escrow_service import EscrowService

    native_bank = SimulatedNativeBank()
    token_directory = TokenDirectory(
        [
            SimulatedToken(
                settings.simulated_token_address,
                symbol=settings.simulated_token_symbol,
                decimals=settings.simulated_token_decimals,
            )
        ]
    )
    ledger = build_ledger(settings, native_bank, token_directory)
    app.state.native_bank = native_bank
    app.state.token_directory = token_directory
    app.state.ledger = ledger

    try:
        async with _get_session_factory()() as session:
            service = EscrowService(session, ledger)
            await service.prepare_projection(reset=settings.database_reset_on_startup)
            await service.sync_registry()
            await session.commit()
    except Exception:
        logger.exception("app.startup_failed")
        await close_db()
        raise

    logger.info(
        "app.started",
        host=settings.app_host,
        port=settings.app_port,
        arbiters=len(ledger.registry.approved_arbiters()),
    )

    yield

    # Shutdown
    logger.info("app.shutting_down")
    await close_db()
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Application factory — creates and configures the FastAPI app."""
    settings = get_settings()

    app = FastAPI(
        title="Deal Escrow",
        description=(
            "Three-party escrow ledger: buyer pays into custody, seller ships, "
            "buyer confirms or an approved arbiter settles the dispute."
        ),
        version=__version__,
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # --- Middleware ---
    from deal_escrow.api.middleware import setup_middleware

    setup_middleware(app)

    # --- REST API Routes ---
    from deal_escrow.api.routes.arbiters import router as arbiters_router
    from deal_escrow.api.routes.deals import router as deals_router
    from deal_escrow.api.routes.health import router as health_router

    app.include_router(health_router)
    app.include_router(deals_router)
    app.include_router(arbiters_router)

    if settings.is_development:
        from deal_escrow.api.routes.dev import router as dev_router

        app.include_router(dev_router)

    return app


# The app instance used by Uvicorn
app = create_app()
