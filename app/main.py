import uvicorn
from fastapi import FastAPI

from app.api.routes.admin import router as admin_router
from app.api.routes.coupons import router as coupons_router
from app.api.routes.health import router as health_router
from app.api.routes.payments import router as payments_router
from app.api.routes.tournaments import router as tournaments_router
from app.api.routes.wallet import router as wallet_router
from app.core.config import get_settings
from app.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, service="api", app_env=settings.app_env)

    app = FastAPI(
        title="Tournament Ledger API",
        version="0.1.0",
        docs_url="/docs" if settings.enable_openapi_docs else None,
        redoc_url="/redoc" if settings.enable_openapi_docs else None,
        openapi_url="/openapi.json" if settings.enable_openapi_docs else None,
    )
    app.include_router(health_router)
    app.include_router(coupons_router)
    app.include_router(tournaments_router)
    app.include_router(payments_router)
    app.include_router(wallet_router)
    app.include_router(admin_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
