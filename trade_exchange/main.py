"""
Application entry point.
Run with:  trade-exchange            (HOST / PORT / DEBUG from settings)
      or:  uvicorn trade_exchange.main:app --reload --port 4000

⚠️  DEVELOPMENT NOTE:
    A default admin and a demo catalogue are seeded on startup while
    SEED_DEMO_DATA is true (see trade_exchange/db/seeder.py).
"""
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from trade_exchange.core.logging_config import configure_logging
from trade_exchange.core.config import settings
from trade_exchange.core.exceptions import AppError
from trade_exchange.api.v1.router import api_router
from trade_exchange.db.factory import build_store
from trade_exchange.db.seeder import seed_all
from trade_exchange.db.store import RowStore
from trade_exchange.services.payment_gateway import PaymentGateway, build_payment_gateway

configure_logging()

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error rendering: every failure is {"error": message}
# ---------------------------------------------------------------------------

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid input")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s", type(exc).__name__, request.method, request.url.path,
                exc_info=exc.__cause__ or exc,
            )
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.info("Rejected invalid request on %s: %s", request.url.path, exc.errors())
        return _error(400, _validation_message(exc))

    @app.exception_handler(Exception)
    def handle_unexpected(request: Request, exc: Exception):
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return _error(500, "Internal server error")


def create_app(
    store: Optional[RowStore] = None,
    payment_gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    *store* and *payment_gateway* override the ones built from settings.
    """
    logger.info("Starting FastAPI application setup")
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Backend API for a two-sided services marketplace: providers, "
            "listings, search, orders, messaging and checkout."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.store = store
    app.state.payment_gateway = payment_gateway or build_payment_gateway()

    # ── Middleware ──────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Errors ──────────────────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_router)

    @app.get("/health", tags=["Health"], summary="Liveness and storage backend")
    def health(request: Request):
        current: RowStore = request.app.state.store
        return {"ok": True, "storage": current.backend if current else "none"}

    # ── Startup / shutdown events ───────────────────────────────────────────
    @app.on_event("startup")
    def on_startup() -> None:
        """Open the row store and load development seed data."""
        if app.state.store is None:
            logger.info("Building row store backend=%s", settings.STORAGE_BACKEND)
            app.state.store = build_store()
        # ⚠️ DEV ONLY – disable with SEED_DEMO_DATA=false in production
        if settings.SEED_DEMO_DATA:
            seed_all(app.state.store)

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    logger.info("Serving on %s:%s", settings.HOST, settings.PORT)
    uvicorn.run(
        "trade_exchange.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
