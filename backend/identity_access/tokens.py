"""
Identity token codec for the `id` cookie.

Why: The cookie carries nothing but the role tag and the 128-bit identifier,
so the text form must be unambiguous and strict. `P<digits>` names a
participant, `A<digits>` an admin.

Decoding accepts the tag in either case and an unsigned decimal remainder with
an optional leading `+`. Whitespace, signs other than `+`, digit separators and
values beyond 128 bits are rejected; there is no partial success.
"""
from __future__ import annotations

import re

from .domain import MAX_ID, AdminId, IdentityToken, ParticipantId

_DIGITS = re.compile(r"\+?[0-9]+")
_MAX_DIGITS = len(str(MAX_ID))

_BY_TAG = {
    ParticipantId.tag: ParticipantId,
    AdminId.tag: AdminId,
}


class TokenDecodeError(ValueError):
    """Raised when cookie text does not encode an identity token."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def encode(token: IdentityToken) -> str:
    return f"{token.tag}{token.value}"


def decode(text: str) -> IdentityToken:
    if not text:
        raise TokenDecodeError("empty")
    id_type = _BY_TAG.get(text[0].upper())
    if id_type is None:
        raise TokenDecodeError("unknown_role")
    rest = text[1:]
    if not _DIGITS.fullmatch(rest):
        raise TokenDecodeError("invalid_number")
    # Leading zeros are legal; anything longer than MAX_ID is out of range.
    significant = rest.lstrip("+").lstrip("0")
    if len(significant) > _MAX_DIGITS:
        raise TokenDecodeError("out_of_range")
    value = int(significant or "0")
    if value > MAX_ID:
        raise TokenDecodeError("out_of_range")
    return id_type(value)


__all__ = ["TokenDecodeError", "encode", "decode"]
