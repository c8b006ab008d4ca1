"""
Configuration and startup security checks for MAML Online.

Why: The identity cookie is only as safe as the transport. This module reads
the environment in one place and provides a guard that refuses obviously
insecure production setups without burdening local development.

Permissions: The caller needs no special privileges. Functions read
environment variables; the guard raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

from dataclasses import dataclass
import os


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def _flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes")


def _port(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise SystemExit(f"Refusing to start: {name} must be an integer port (got {raw!r}).")


@dataclass(frozen=True)
class Settings:
    environment: str
    host: str
    port: int
    http_port: int
    https_port: int
    redirect_enabled: bool
    hsts: bool
    log_level: str

    @property
    def prod_like(self) -> bool:
        return _is_prod_like(self.environment)


def load_settings() -> Settings:
    return Settings(
        environment=os.getenv("MAML_ENV", "dev").lower(),
        host=os.getenv("MAML_HOST", "0.0.0.0"),
        port=_port("MAML_PORT", 8000),
        http_port=_port("MAML_HTTP_PORT", 80),
        https_port=_port("MAML_HTTPS_PORT", 443),
        redirect_enabled=_flag("MAML_REDIRECT_ENABLED"),
        hsts=_flag("MAML_HSTS"),
        log_level=(os.getenv("MAML_LOG_LEVEL", "INFO") or "INFO").upper(),
    )


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Checks (prod/staging only):
    - All configured ports are valid TCP ports.
    - When the HTTP→HTTPS redirect listener is enabled, HSTS must be on so
      browsers stop trying plain HTTP after the first visit.
    """
    settings = load_settings()
    if not settings.prod_like:
        return  # dev/test remain permissive

    for name, value in (("MAML_PORT", settings.port), ("MAML_HTTP_PORT", settings.http_port), ("MAML_HTTPS_PORT", settings.https_port)):
        if not 0 < value < 65536:
            raise SystemExit(f"Refusing to start: {name}={value} is not a valid TCP port.")

    if settings.redirect_enabled and not settings.hsts:
        raise SystemExit(
            "Refusing to start: MAML_HSTS must be enabled when the HTTPS redirect listener runs in production."
        )
