"""
Session store tests: creation, lookups, disjoint role maps, no-overwrite.

Collisions are simulated by injecting a deterministic id source.
"""
from __future__ import annotations

import itertools
import threading

import pytest

from backend.identity_access.domain import Admin, AdminId, Participant, ParticipantId
from backend.identity_access.stores import (
    MAX_ID_ATTEMPTS,
    DuplicateIdError,
    IdSpaceExhaustedError,
    SessionStore,
    UnknownIdentityError,
)


def _ids(*values: int):
    it = iter(values)
    return lambda: next(it)


def test_create_participant_stores_record(store: SessionStore):
    pid = store.create_participant("Ada", "Tech High", 11)
    assert isinstance(pid, ParticipantId)
    assert store.has(pid)
    assert store.get_participant(pid) == Participant(id=pid, name="Ada", school="Tech High", grade=11)


def test_create_admin_stores_record(store: SessionStore):
    aid = store.create_admin("Tech High")
    assert isinstance(aid, AdminId)
    assert store.has(aid)
    assert store.get_admin(aid) == Admin(id=aid, school="Tech High")


def test_role_maps_are_disjoint():
    s = SessionStore(id_source=_ids(5, 5))
    pid = s.create_participant("Ada", "Tech High", 11)
    aid = s.create_admin("Tech High")
    assert pid.value == aid.value == 5
    assert s.has(ParticipantId(5)) and s.has(AdminId(5))
    assert s.lookup(pid).name == "Ada"
    assert isinstance(s.lookup(aid), Admin)
    assert s.participant_count() == 1
    assert s.admin_count() == 1


def test_has_is_false_for_unknown_ids(store: SessionStore):
    pid = store.create_participant("Ada", "Tech High", 11)
    assert not store.has(AdminId(pid.value))
    assert not store.has(ParticipantId((pid.value + 1) % 2**128))
    assert store.lookup(AdminId(pid.value)) is None


def test_collision_retries_without_overwriting():
    s = SessionStore(id_source=_ids(1, 1, 2))
    first = s.create_participant("Ada", "Tech High", 11)
    second = s.create_participant("Grace", "Navy School", 12)
    assert first == ParticipantId(1)
    assert second == ParticipantId(2)
    assert s.get_participant(first).name == "Ada"
    assert s.get_participant(second).name == "Grace"


def test_persistent_collision_raises_and_keeps_first_record():
    s = SessionStore(id_source=lambda: 7)
    aid = s.create_admin("Tech High")
    with pytest.raises(IdSpaceExhaustedError):
        s.create_admin("Other School")
    assert s.get_admin(aid).school == "Tech High"
    assert s.admin_count() == 1


def test_collision_attempts_are_bounded():
    calls = itertools.count()

    def source() -> int:
        next(calls)
        return 3

    s = SessionStore(id_source=source)
    s.create_participant("Ada", "Tech High", 11)
    with pytest.raises(IdSpaceExhaustedError):
        s.create_participant("Grace", "Navy School", 12)
    assert next(calls) == 1 + MAX_ID_ATTEMPTS


def test_direct_duplicate_insert_is_rejected():
    s = SessionStore(id_source=lambda: 9)
    pid = s.create_participant("Ada", "Tech High", 11)
    with pytest.raises(DuplicateIdError):
        s._participants.insert(pid, Participant(id=pid, name="Mallory", school="X", grade=1))
    assert s.get_participant(pid).name == "Ada"


def test_get_unknown_id_is_a_contract_violation(store: SessionStore):
    with pytest.raises(UnknownIdentityError):
        store.get_participant(ParticipantId(1))
    with pytest.raises(UnknownIdentityError):
        store.get_admin(AdminId(1))


def test_get_with_wrong_id_type_raises_type_error(store: SessionStore):
    aid = store.create_admin("Tech High")
    with pytest.raises(TypeError):
        store.get_participant(aid)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        store.has("P1")  # type: ignore[arg-type]


def test_records_are_immutable(store: SessionStore):
    pid = store.create_participant("Ada", "Tech High", 11)
    with pytest.raises(AttributeError):
        store.get_participant(pid).name = "Eve"  # type: ignore[misc]


def test_random_ids_are_unique(store: SessionStore):
    ids = {store.create_participant(f"p{i}", "S", 9) for i in range(200)}
    assert len(ids) == 200


def test_concurrent_creation_and_lookup():
    s = SessionStore()
    created: list[ParticipantId] = []
    lock = threading.Lock()
    errors: list[BaseException] = []

    def writer(n: int) -> None:
        try:
            for i in range(50):
                pid = s.create_participant(f"w{n}-{i}", "School", 10)
                with lock:
                    created.append(pid)
        except BaseException as exc:  # pragma: no cover - surfaced via assertion
            errors.append(exc)

    def reader() -> None:
        try:
            for _ in range(200):
                with lock:
                    snapshot = list(created)
                for pid in snapshot:
                    assert s.has(pid)
        except BaseException as exc:  # pragma: no cover - surfaced via assertion
            errors.append(exc)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert not errors
    assert s.participant_count() == 200
    assert len(set(created)) == 200
