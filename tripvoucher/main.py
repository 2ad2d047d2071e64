import logging

from fastapi import FastAPI

from .core.config import get_settings, Settings
from .core.errors import register_error_handlers
from .core.logging import init_logging, request_context_middleware
from .db.schema import init_db
from .routers import expenses, health, profile, reports, vouchers
from .services.identity import IdentityProvider, JwtIdentityProvider


def create_app(
    settings_override: Settings | None = None,
    identity_provider: IdentityProvider | None = None,
) -> FastAPI:
    """Build the voucher API.

    settings_override: a ready Settings instance (tests and scripts point it at
    a throwaway database). Without it the cached get_settings() is used.
    identity_provider: replaces the JWT verifier, e.g. with a stub in tests.
    """
    settings = settings_override or get_settings()
    settings.init_post_load()
    # logging first so schema errors are emitted as JSON too
    init_logging(debug=settings.debug)

    # idempotent; a fresh database gets its tables here
    try:
        init_db(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        logging.getLogger("tripvoucher").exception("failed to initialize database on startup")
        raise

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.settings = settings
    app.state.identity_provider = identity_provider or JwtIdentityProvider(
        secret=settings.jwt_secret,
        audience=settings.jwt_audience,
        algorithms=settings.jwt_algorithms,
    )

    # request id + one access line per request
    app.middleware("http")(request_context_middleware)

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(profile.router)
    app.include_router(vouchers.router)
    app.include_router(expenses.router)
    app.include_router(reports.router)

    @app.get("/")
    def root():
        return {"message": "Travel Voucher Tracker API", "version": settings.version}

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000, log_config=None)
