"""
Authentication guard: resolve the `id` cookie to a role-typed identity.

Why: Handlers should receive either a validated participant/admin id or a clear
"not authenticated" outcome, never a raw cookie. Keeping the decision tree
framework-agnostic makes it a pure function of (store state, cookie value) that
tests can drive directly.

Outcomes:
- no cookie               -> UNAUTHENTICATED (nothing to clean up)
- cookie does not decode  -> UNAUTHENTICATED, cookie must be deleted
- decodes, unknown id     -> UNAUTHENTICATED, cookie must be deleted (stale)
- known participant       -> PARTICIPANT
- known admin             -> ADMIN
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import logging

from .domain import AdminId, IdentityToken, ParticipantId, Role
from .stores import SessionStore
from .tokens import TokenDecodeError, decode

logger = logging.getLogger("mamlonline.identity_access")

COOKIE_NAME = "id"


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    PARTICIPANT = "participant"
    ADMIN = "admin"


class FailureReason(str, Enum):
    NO_COOKIE = "no_cookie"
    MALFORMED = "malformed"
    STALE = "stale"


class RoleMatch(str, Enum):
    MATCHED = "matched"
    WRONG_ROLE = "wrong_role"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class GuardResult:
    state: AuthState
    identity: Optional[IdentityToken] = None
    reason: Optional[FailureReason] = None

    @property
    def authenticated(self) -> bool:
        return self.identity is not None

    @property
    def clear_cookie(self) -> bool:
        return self.reason in (FailureReason.MALFORMED, FailureReason.STALE)

    @property
    def role(self) -> Optional[Role]:
        return self.identity.role if self.identity is not None else None

    @property
    def participant_id(self) -> Optional[ParticipantId]:
        return self.identity if isinstance(self.identity, ParticipantId) else None

    @property
    def admin_id(self) -> Optional[AdminId]:
        return self.identity if isinstance(self.identity, AdminId) else None


ANONYMOUS = GuardResult(AuthState.UNAUTHENTICATED, reason=FailureReason.NO_COOKIE)

_STATE_BY_ROLE = {
    Role.PARTICIPANT: AuthState.PARTICIPANT,
    Role.ADMIN: AuthState.ADMIN,
}


def authenticate(store: SessionStore, cookie_value: Optional[str]) -> GuardResult:
    if cookie_value is None:
        return ANONYMOUS
    try:
        token = decode(cookie_value)
    except TokenDecodeError as exc:
        logger.debug("Rejecting identity cookie: %s", exc.code)
        return GuardResult(AuthState.UNAUTHENTICATED, reason=FailureReason.MALFORMED)
    if not store.has(token):
        logger.info("Rejecting stale %s identity cookie", token.role.value)
        return GuardResult(AuthState.UNAUTHENTICATED, reason=FailureReason.STALE)
    return GuardResult(_STATE_BY_ROLE[token.role], identity=token)


def match_role(result: GuardResult, required: Optional[Role]) -> RoleMatch:
    """Compare a guard result with what a route requires.

    `required=None` accepts any authenticated identity.
    """
    if not result.authenticated:
        return RoleMatch.UNAUTHENTICATED
    if required is None or result.role is required:
        return RoleMatch.MATCHED
    return RoleMatch.WRONG_ROLE


__all__ = [
    "COOKIE_NAME",
    "AuthState",
    "FailureReason",
    "RoleMatch",
    "GuardResult",
    "ANONYMOUS",
    "authenticate",
    "match_role",
]
