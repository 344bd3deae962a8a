import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .errors import StoreError, UploadFailed
from .keepalive import self_ping_loop
from .media import PlaceholderMedia, SupabaseMedia
from .routers import admin, auth, categories, misc, products, profile, socials
from .store.base import Store
from .store.database import DatabaseStore
from .store.memory import MemoryStore
from .supabase_client import get_supabase

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> Store:
    if settings.database_url:
        return DatabaseStore.from_url(
            settings.database_url,
            ssl_ca=settings.database_ssl_ca,
            seed_categories=settings.dev_mode,
        )
    logger.info("no DATABASE_URL: using the in-memory store, data is lost on restart")
    return MemoryStore()


def build_media(settings: Settings):
    if settings.media_configured:
        return SupabaseMedia(get_supabase(settings), settings.supabase_bucket)
    logger.info("no Supabase credentials: uploads return placeholder images")
    return PlaceholderMedia()


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        msg = str(error.get("msg", "invalid input")).removeprefix("Value error, ")
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages) or "invalid request"


def install_error_handlers(app: FastAPI) -> None:
    # Every error goes back as a status code plus a plain-text message.

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return PlainTextResponse(_validation_message(exc), status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError):
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(UploadFailed)
    async def upload_error(request: Request, exc: UploadFailed):
        return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(SQLAlchemyError)
    async def db_error(request: Request, exc: SQLAlchemyError):
        logger.error("database error on %s %s", request.method, request.url.path, exc_info=exc)
        return PlainTextResponse("db error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[Store] = None,
    media=None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    store = store or build_store(settings)
    media = media or build_media(settings)
    logger.info("starting with %s store (env=%s, dev_mode=%s)", store.name, settings.env, settings.dev_mode)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        pinger = None
        if settings.self_ping_url:
            pinger = asyncio.create_task(
                self_ping_loop(settings.self_ping_url, settings.self_ping_interval_min * 60)
            )
        yield
        if pinger is not None:
            pinger.cancel()
            try:
                await pinger
            except asyncio.CancelledError:
                pass
        store.close()

    app = FastAPI(title="Linkshop Backend", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.media = media
    install_error_handlers(app)

    @app.get("/health")
    def healthcheck():
        return {"status": "ok", "env": settings.env, "backend": store.name}

    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(products.router, prefix="/api/products", tags=["products"])
    app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
    app.include_router(socials.router, prefix="/api/socials", tags=["socials"])
    app.include_router(profile.router, prefix="/api/profile", tags=["profile"])
    app.include_router(admin.router, tags=["admin"])
    app.include_router(misc.router, tags=["misc"])

    app.mount("/static", StaticFiles(directory=settings.static_dir, check_dir=False), name="static")

    @app.get("/", include_in_schema=False)
    def index():
        page = settings.static_dir / "index.html"
        if not page.is_file():
            return {"message": "Linkshop API"}
        return FileResponse(page)

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "linkshop.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        timeout_graceful_shutdown=10,
    )


if __name__ == "__main__":
    run()
