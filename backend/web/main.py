"MAML Online"
from __future__ import annotations

import logging
import os
import sys

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.identity_access.guard import COOKIE_NAME, authenticate
from backend.identity_access.stores import SessionStore
from backend.web import config as _cfg
from backend.web.auth_utils import clear_identity_cookie, sets_identity_cookie
from backend.web.routes.registration import registration_router
from backend.web.routes.sessions import sessions_router


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out/opt-in via MAML_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("MAML_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    from dotenv import load_dotenv

    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

logger = logging.getLogger("mamlonline.web")
SETTINGS = _cfg.load_settings()


def create_app(store: SessionStore | None = None, settings: _cfg.Settings | None = None) -> FastAPI:
    """Build the application around one shared session store.

    Tests pass a fresh store per case; production uses one store for the
    lifetime of the process.
    """
    application = FastAPI(title="MAML Online", description="Event registration backend", version="0.1.0")
    application.state.session_store = store if store is not None else SessionStore()
    application.state.settings = settings if settings is not None else SETTINGS

    application.include_router(registration_router)
    application.include_router(sessions_router)

    @application.middleware("http")
    async def identity_guard(request: Request, call_next):
        # No public bypass: `/health` also drops a bad cookie.
        result = authenticate(request.app.state.session_store, request.cookies.get(COOKIE_NAME))
        request.state.auth = result
        response = await call_next(request)
        # Malformed or stale cookies are dropped unless the handler just issued a new one.
        if result.clear_cookie and not sets_identity_cookie(response):
            clear_identity_cookie(response, environment=request.app.state.settings.environment)
        return response

    @application.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        return response

    @application.get("/health")
    async def health_check(request: Request):
        store = request.app.state.session_store
        return JSONResponse(
            {"status": "ok", "participants": store.participant_count(), "admins": store.admin_count()},
            headers={"Cache-Control": "no-store"},
        )

    return application


app = create_app()
