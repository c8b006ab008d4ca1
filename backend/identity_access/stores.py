"""
In-memory session store for participants and admins.

Why: The cookie carries only an opaque identity token; the records stay
server-side. One store instance is shared by every request of the process and
lives until shutdown. There is no persistence and no expiry: records are
appended once at registration and never removed or mutated.

Concurrency: each role has its own map guarded by its own reader/writer lock,
so lookups of both roles run in parallel and a participant registration never
blocks admin lookups.
"""
from __future__ import annotations

from typing import Callable, Dict, Optional, TypeVar
import logging
import secrets

from .domain import ID_BITS, Admin, AdminId, IdentityToken, Participant, ParticipantId, Person
from .locking import ReadWriteLock

logger = logging.getLogger("mamlonline.identity_access")

MAX_ID_ATTEMPTS = 3

K = TypeVar("K")
V = TypeVar("V")


class SessionStoreError(Exception):
    """Base class for store failures."""


class DuplicateIdError(SessionStoreError):
    """Raised when an insert would overwrite an existing record."""


class IdSpaceExhaustedError(SessionStoreError):
    """Raised when every generated id collided with an existing record."""


class UnknownIdentityError(LookupError):
    """A get_* call for an id the guard never validated (caller bug)."""


def _random_id() -> int:
    return secrets.randbits(ID_BITS)


class _RoleMap:
    """One role's records plus the lock guarding them."""

    def __init__(self) -> None:
        self.lock = ReadWriteLock()
        self.records: Dict[object, object] = {}

    def insert(self, key, record) -> None:
        with self.lock.write():
            if key in self.records:
                raise DuplicateIdError(type(key).__name__)
            self.records[key] = record

    def contains(self, key) -> bool:
        with self.lock.read():
            return key in self.records

    def get(self, key):
        with self.lock.read():
            return self.records.get(key)

    def __len__(self) -> int:
        with self.lock.read():
            return len(self.records)


class SessionStore:
    def __init__(self, id_source: Optional[Callable[[], int]] = None) -> None:
        self._id_source = id_source or _random_id
        self._participants = _RoleMap()
        self._admins = _RoleMap()

    def _create(self, role_map: _RoleMap, make_id: Callable[[int], K], make_record: Callable[[K], V]) -> K:
        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            new_id = make_id(self._id_source())
            try:
                role_map.insert(new_id, make_record(new_id))
            except DuplicateIdError:
                logger.error("Identity id collision on insert (%s, attempt %d)", type(new_id).__name__, attempt)
                continue
            return new_id
        raise IdSpaceExhaustedError(f"no free id after {MAX_ID_ATTEMPTS} attempts")

    def create_participant(self, name: str, school: str, grade: int) -> ParticipantId:
        pid = self._create(
            self._participants,
            ParticipantId,
            lambda i: Participant(id=i, name=name, school=school, grade=grade),
        )
        logger.info("Participant registered")
        return pid

    def create_admin(self, school: str) -> AdminId:
        aid = self._create(self._admins, AdminId, lambda i: Admin(id=i, school=school))
        logger.info("Admin registered")
        return aid

    def _map_for(self, token: IdentityToken) -> _RoleMap:
        if isinstance(token, ParticipantId):
            return self._participants
        if isinstance(token, AdminId):
            return self._admins
        raise TypeError(f"not an identity token: {type(token).__name__}")

    def has(self, token: IdentityToken) -> bool:
        return self._map_for(token).contains(token)

    def lookup(self, token: IdentityToken) -> Optional[Person]:
        return self._map_for(token).get(token)

    def get_participant(self, pid: ParticipantId) -> Participant:
        if not isinstance(pid, ParticipantId):
            raise TypeError("get_participant expects a ParticipantId")
        rec = self._participants.get(pid)
        if rec is None:
            raise UnknownIdentityError("participant")
        return rec

    def get_admin(self, aid: AdminId) -> Admin:
        if not isinstance(aid, AdminId):
            raise TypeError("get_admin expects an AdminId")
        rec = self._admins.get(aid)
        if rec is None:
            raise UnknownIdentityError("admin")
        return rec

    def participant_count(self) -> int:
        return len(self._participants)

    def admin_count(self) -> int:
        return len(self._admins)


__all__ = [
    "MAX_ID_ATTEMPTS",
    "SessionStore",
    "SessionStoreError",
    "DuplicateIdError",
    "IdSpaceExhaustedError",
    "UnknownIdentityError",
]
