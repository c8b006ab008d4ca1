"""
Identity domain types: roles, per-role identifiers and their records.

Why:
- Participants and admins live in separate id spaces. Giving each its own id
  type makes a cross-role lookup a type error instead of a silent miss.
- Records are immutable; there is no update path once a person registered.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

ID_BITS = 128
MAX_ID = (1 << ID_BITS) - 1
MAX_GRADE = 255


class Role(str, Enum):
    PARTICIPANT = "participant"
    ADMIN = "admin"


@dataclass(frozen=True)
class _RoleId:
    value: int

    role: ClassVar[Role]
    tag: ClassVar[str]

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"{type(self).__name__} expects an int")
        if not 0 <= self.value <= MAX_ID:
            raise ValueError(f"{type(self).__name__} must fit in {ID_BITS} unsigned bits")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ParticipantId(_RoleId):
    role: ClassVar[Role] = Role.PARTICIPANT
    tag: ClassVar[str] = "P"


@dataclass(frozen=True)
class AdminId(_RoleId):
    role: ClassVar[Role] = Role.ADMIN
    tag: ClassVar[str] = "A"


# The identity token is the tagged union of both id types.
IdentityToken = Union[ParticipantId, AdminId]


@dataclass(frozen=True)
class Participant:
    id: ParticipantId
    name: str
    school: str
    grade: int

    def to_view(self) -> dict:
        """View model handed to the web layer; ids travel as decimal strings."""
        return {"id": str(self.id), "name": self.name, "school": self.school, "grade": self.grade}


@dataclass(frozen=True)
class Admin:
    id: AdminId
    school: str

    def to_view(self) -> dict:
        return {"id": str(self.id), "school": self.school}


Person = Union[Participant, Admin]

__all__ = [
    "ID_BITS",
    "MAX_ID",
    "MAX_GRADE",
    "Role",
    "ParticipantId",
    "AdminId",
    "IdentityToken",
    "Participant",
    "Admin",
    "Person",
]
