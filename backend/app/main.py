from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from backend.app.core.config import settings
from backend.app.core.exceptions import register_exception_handlers
from backend.app.core.logging_config import setup_logging
from backend.app.db.session import build_engine, build_sessionmaker
from backend.app.services.notifier import build_notifier
import backend.app.routers.health as health
import backend.app.routers.reservations as reservations


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = build_engine(settings.DATABASE_URL)
    app.state.sessionmaker = build_sessionmaker(engine)
    app.state.notifier = build_notifier(settings)
    logger.info(f"Reservation API starting (auth={settings.AUTH_POLICY}, mail={settings.MAIL_BACKEND})")
    try:
        yield
    finally:
        await engine.dispose()


setup_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Restaurant Reservation API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Authorization"],
)
register_exception_handlers(app)

app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(reservations.router, prefix=settings.API_PREFIX)
