import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from linkapi import containers
from linkapi.config import settings
from linkapi.core.exception_handlers import register_exception_handlers
from linkapi.core.logging_middleware import LoggingMiddleware
from linkapi.logging_config import setup_logging
from linkapi.routers import (
    analytics_router,
    health_router,
    link_router,
    payout_router,
    redirect_router,
)

load_dotenv("linkapi/.env")
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
    app.container = containers.Container()  # type: ignore

    origins = [o.strip() for o in (settings.ALLOWED_ORIGINS or "*").split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router.router)
    app.include_router(redirect_router.router, prefix=settings.API_V1_STR)
    app.include_router(link_router.router, prefix=settings.API_V1_STR)
    app.include_router(analytics_router.router, prefix=settings.API_V1_STR)
    app.include_router(payout_router.router, prefix=settings.API_V1_STR)
    # catch-all /{short_code} goes last so it never shadows the routes above
    app.include_router(redirect_router.public_router)

    return app


app = create_app()

handler = Mangum(app)
