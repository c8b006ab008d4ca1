"""
Role-dispatched routes with fall-through on role mismatch.

Why:
    The same path (`/login`, `/welcome`) serves participants and admins
    differently. FastAPI binds one endpoint per method/path, so a `RoleRoute`
    holds an ordered list of handlers, each with a requirement, and forwards
    to the next handler when the guard outcome does not match. A valid admin
    cookie on a participant handler is not an error; the admin handler gets
    its turn.

Usage:
    welcome = RoleRoute("welcome")

    @welcome.participant
    async def participant_view(request, pid): ...

    @welcome.admin
    async def admin_view(request, aid): ...

    @welcome.anonymous
    async def anon(request, result): ...

    router.add_api_route("/welcome", welcome.endpoint(), methods=["GET"])

Handlers are tried in registration order. When none accepts the outcome the
route answers 401 (no identity) or 403 (valid identity, no handler for its
role).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from backend.identity_access.domain import Role
from backend.identity_access.guard import ANONYMOUS, GuardResult, RoleMatch, match_role

logger = logging.getLogger("mamlonline.web")

Handler = Callable[..., Awaitable[Any]]

_ANY = "any"
_ANONYMOUS = "anonymous"


def private_response(body: dict, *, status_code: int = 200) -> JSONResponse:
    """JSON response that must never be cached (it carries per-identity data)."""
    return JSONResponse(body, status_code=status_code, headers={"Cache-Control": "private, no-store"})


def guard_result(request: Request) -> GuardResult:
    """Guard outcome attached by the identity middleware (anonymous if absent)."""
    return getattr(request.state, "auth", None) or ANONYMOUS


@dataclass
class _Candidate:
    requirement: object
    handler: Handler


class RoleRoute:
    def __init__(self, name: str) -> None:
        self.name = name
        self._candidates: List[_Candidate] = []

    def _register(self, requirement: object, handler: Handler) -> Handler:
        self._candidates.append(_Candidate(requirement, handler))
        return handler

    def participant(self, handler: Handler) -> Handler:
        """Handler called as `handler(request, participant_id)`."""
        return self._register(Role.PARTICIPANT, handler)

    def admin(self, handler: Handler) -> Handler:
        """Handler called as `handler(request, admin_id)`."""
        return self._register(Role.ADMIN, handler)

    def any(self, handler: Handler) -> Handler:
        """Handler called as `handler(request, identity)` for either role."""
        return self._register(_ANY, handler)

    def anonymous(self, handler: Handler) -> Handler:
        """Handler called as `handler(request, guard_result)` without identity."""
        return self._register(_ANONYMOUS, handler)

    @staticmethod
    def _accepts(requirement: object, result: GuardResult) -> bool:
        if requirement == _ANONYMOUS:
            return not result.authenticated
        required: Optional[Role] = None if requirement == _ANY else requirement  # type: ignore[assignment]
        return match_role(result, required) is RoleMatch.MATCHED

    def endpoint(self) -> Handler:
        """Plain async endpoint for `add_api_route` (FastAPI needs a function)."""

        async def _dispatch(request: Request):
            return await self.dispatch(request)

        _dispatch.__name__ = f"{self.name}_dispatch"
        return _dispatch

    async def dispatch(self, request: Request):
        result = guard_result(request)
        for cand in self._candidates:
            if not self._accepts(cand.requirement, result):
                continue
            if cand.requirement == _ANONYMOUS:
                return await cand.handler(request, result)
            return await cand.handler(request, result.identity)
        if result.authenticated:
            logger.info("No %s handler for role %s", self.name, result.role.value)
            return private_response({"error": "forbidden"}, status_code=403)
        return private_response({"error": "unauthenticated"}, status_code=401)


__all__ = ["RoleRoute", "guard_result", "private_response"]
