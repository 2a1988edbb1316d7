import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hauptgang.auth import router as auth_router
from hauptgang.core import db, errors, settings
from hauptgang.core.limiter import limiter
from hauptgang.core.log import configure_logging
from hauptgang.recipes import router as recipes_router
from hauptgang.shopping_list import router as shopping_list_router
from hauptgang.subscriptions import router as subscriptions_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Initialize the DB pool once per process.
    await db.init_pool()
    if settings.env_bool("DB_APPLY_SCHEMA", True):
        await db.apply_schema()
    logger.info("startup env=%s", settings.app_env())
    try:
        yield
    finally:
        await db.close_pool()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Hauptgang API", lifespan=lifespan)
    app.state.limiter = limiter
    errors.register(app)

    # Bearer tokens only (no cookies), so any origin may call the API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(recipes_router.router, tags=["recipes"])
    app.include_router(shopping_list_router.router, tags=["shopping_list"])
    app.include_router(subscriptions_router.router, tags=["subscriptions"])

    @app.get("/up")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
