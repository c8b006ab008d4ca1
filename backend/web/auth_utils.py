"""
Shared cookie helpers for the identity cookie.

Why:
    Registration, logout and the guard middleware all touch the `id` cookie.
    Keeping the flags in one place avoids drift between setting and deleting
    (a deletion only works when path and flags match the cookie being removed).
"""

from __future__ import annotations

from starlette.responses import Response

from backend.identity_access.guard import COOKIE_NAME
from backend.identity_access.domain import IdentityToken
from backend.identity_access.tokens import encode


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags (dev = prod).

    Returns a mapping with keys:
      - secure: True
      - samesite: "lax"  # cookie must survive the top-level redirect after registration
    """
    return {"secure": True, "samesite": "lax"}


def set_identity_cookie(response: Response, token: IdentityToken, *, environment: str) -> None:
    opts = cookie_opts(environment)
    response.set_cookie(
        key=COOKIE_NAME,
        value=encode(token),
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
    )


def clear_identity_cookie(response: Response, *, environment: str) -> None:
    opts = cookie_opts(environment)
    response.delete_cookie(
        key=COOKIE_NAME,
        path="/",
        secure=opts["secure"],
        httponly=True,
        samesite=opts["samesite"],
    )


def sets_identity_cookie(response: Response) -> bool:
    """True when the response already carries a Set-Cookie for the identity cookie."""
    prefix = f"{COOKIE_NAME}="
    return any(value.startswith(prefix) for value in response.headers.getlist("set-cookie"))
