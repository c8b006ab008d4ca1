"""
HTTP listener which redirects every request to HTTPS.

Why: The identity cookie is `Secure`, so plain HTTP visits must be bounced to
the HTTPS origin before they reach the app. The listener shares no state with
the session store; each request gets a 301 and the connection is closed.

Example:
    RedirectConfig(http_port=8080, https_port=4443, url_translator=lambda _: "/").serve()

Defaults: http_port 80, https_port 443, every path rewritten to "/", host kept
as sent (minus any port), no HSTS header.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional
import logging

import uvicorn
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("mamlonline.redirect")

HSTS_VALUE = "max-age=2592000"


def default_url_translator(path: str) -> str:
    return "/"


def default_host_translator(host: str) -> str:
    return host


@dataclass(frozen=True)
class RedirectConfig:
    http_port: int = 80
    https_port: int = 443
    url_translator: Callable[[str], str] = field(default=default_url_translator)
    host_translator: Callable[[str], str] = field(default=default_host_translator)
    hsts: bool = False

    def location_for(self, host_header: str, target: str) -> str:
        """Build the HTTPS Location for a Host header and request target."""
        host = self.host_translator(host_header.split(":", 1)[0])
        new_url = self.url_translator(target)
        if self.https_port == 443:
            return f"https://{host}{new_url}"
        return f"https://{host}:{self.https_port}{new_url}"

    def redirect_response(self, host_header: Optional[str], target: str) -> Response:
        if not host_header:
            return Response(status_code=400, headers={"Connection": "close"})
        headers = {
            "Location": self.location_for(host_header, target),
            "Connection": "close",
        }
        if self.hsts:
            headers["Strict-Transport-Security"] = HSTS_VALUE
        return Response(status_code=301, headers=headers)

    def asgi_app(self) -> "RedirectApp":
        return RedirectApp(self)

    def server(self, host: str = "0.0.0.0") -> uvicorn.Server:
        cfg = uvicorn.Config(self.asgi_app(), host=host, port=self.http_port, log_level="info")
        return uvicorn.Server(cfg)

    def serve(self, host: str = "0.0.0.0") -> None:
        logger.info("HTTPS redirect listening on %s:%d", host, self.http_port)
        self.server(host).run()


class RedirectApp:
    """Minimal ASGI app answering every HTTP request with a redirect."""

    def __init__(self, config: RedirectConfig) -> None:
        self.config = config

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] == "lifespan":
            while True:
                message = await receive()
                if message["type"] == "lifespan.startup":
                    await send({"type": "lifespan.startup.complete"})
                elif message["type"] == "lifespan.shutdown":
                    await send({"type": "lifespan.shutdown.complete"})
                    return
        if scope["type"] != "http":
            return
        request = Request(scope, receive)
        # Forward the target as sent; `scope["path"]` is already percent-decoded.
        raw_path = scope.get("raw_path")
        target = raw_path.decode("latin-1") if raw_path else request.url.path
        query = scope.get("query_string", b"")
        if query:
            target = f"{target}?{query.decode('latin-1')}"
        response = self.config.redirect_response(request.headers.get("host"), target)
        await response(scope, receive, send)


__all__ = ["HSTS_VALUE", "RedirectConfig", "RedirectApp", "default_url_translator", "default_host_translator"]
