"""
Session auth service — application entry point.
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.auth import router as auth_router
from api.errors import AppError
from api.middleware import register_middleware
from api.user import router as user_router
from api.validation import Validate
from auth.sessions import session_manager
from config.settings import config
from database.session import init_models

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "aiosqlite", "asyncio"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="CloudKit Auth",
        version="1.0.0",
        description="Cookie-session authentication with per-route request validation.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)

    # Routes
    app.include_router(auth_router, prefix="/api/v1/auth")
    app.include_router(user_router, prefix="/api/v1/user")

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return Validate.handle_error(exc)

    @app.on_event("startup")
    async def on_startup():
        await init_models()

        expired = await session_manager.delete_expired_sessions()
        if expired:
            logger.info("Removed %d expired sessions", expired)

        logger.info("Application ready to accept requests.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
