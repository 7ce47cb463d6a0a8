from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..application.services.account_service import AccountService
from ..application.services.password_hasher import PasswordHasher
from ..application.services.token_service import TokenService
from ..application.services.user_admin_service import UserAdminService
from ..domain.lockout import LockoutPolicy
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..presentation.api.errors import register_exception_handlers
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import users as users_router
from ..services.email_service import EmailService
from .clock import Clock, utc_now
from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="TaskDesk API", lifespan=_create_lifespan(settings, clock or utc_now))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )
    register_exception_handlers(app)

    app.include_router(auth_router.router)
    app.include_router(users_router.router)

    @app.get("/")
    async def root() -> Dict[str, Any]:
        return {"message": "TaskDesk API is running!"}

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


def build_container(settings: Settings, clock: Clock = utc_now) -> ApplicationContainer:
    persistence = SQLitePersistence(settings.database_path)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    token_service = TokenService(
        users=persistence,
        secret_key=settings.jwt_secret,
        token_exp_minutes=settings.jwt_expires_minutes,
        algorithm=settings.jwt_algorithm,
        clock=clock,
    )
    account_service = AccountService(
        users=persistence,
        hasher=hasher,
        tokens=token_service,
        lockout=LockoutPolicy(
            max_attempts=settings.max_login_attempts,
            lock_duration=timedelta(minutes=settings.lockout_minutes),
        ),
        verification_ttl=timedelta(hours=settings.email_verification_hours),
        reset_ttl=timedelta(minutes=settings.password_reset_minutes),
        clock=clock,
    )
    user_admin_service = UserAdminService(users=persistence, hasher=hasher, clock=clock)
    email_service = EmailService(
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_username=settings.smtp_username,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
        verification_ttl=timedelta(hours=settings.email_verification_hours),
        reset_ttl=timedelta(minutes=settings.password_reset_minutes),
    )
    return ApplicationContainer(
        settings=settings,
        persistence=persistence,
        password_hasher=hasher,
        token_service=token_service,
        account_service=account_service,
        user_admin_service=user_admin_service,
        email_service=email_service,
    )


def _create_lifespan(settings: Settings, clock: Clock):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        container = build_container(settings, clock)
        container.user_admin_service.ensure_default_admin(
            settings.admin_default_email, settings.admin_default_password
        )
        app.state.container = container  # type: ignore[attr-defined]
        logger.info("TaskDesk API started with database %s", settings.database_path)

        try:
            yield
        finally:
            container.persistence.close()

    return lifespan
