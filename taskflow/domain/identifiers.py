"""Project identifier parsing and resolution.

A project can be addressed by its internal numeric key or by its public UUID
token. Tokens travel as canonical UUID text, 32-character hex (the store's
``HEX(public_id)`` form) or 16 raw bytes. The identifier is resolved once into
a :class:`ProjectPredicate`; code downstream never branches on its form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal
from uuid import UUID

from taskflow.core.errors import InvalidIdentifierError

MAX_INTERNAL_KEY = 2**63 - 1

_HEX_TOKEN = re.compile(r"^[0-9a-fA-F]{32}$")
_DIGITS = re.compile(r"^[0-9]+$")


@dataclass(frozen=True, slots=True)
class InternalKey:
    value: int


@dataclass(frozen=True, slots=True)
class PublicToken:
    value: UUID


ProjectIdentifier = InternalKey | PublicToken


@dataclass(frozen=True, slots=True)
class ProjectPredicate:
    """Column/value pair the query layer filters projects on."""

    field: Literal["id", "public_id"]
    value: int | UUID


def decode_public_token(value: str | bytes | UUID) -> UUID:
    """Decode a hex, binary or canonical-text public token.

    Raises ``ValueError`` when the value is not a token in any known form.
    """

    if isinstance(value, UUID):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) != 16:
            raise ValueError(f"binary token must be 16 bytes, got {len(raw)}")
        return UUID(bytes=raw)
    if isinstance(value, str):
        text = value.strip()
        if _HEX_TOKEN.match(text):
            return UUID(hex=text)
        return UUID(text)
    raise ValueError(f"unsupported token type {type(value).__name__}")


def parse_identifier(value: object) -> ProjectIdentifier:
    """Parse caller input into a typed identifier, rejecting invalid values."""

    if isinstance(value, (InternalKey, PublicToken)):
        return _validated(value)
    # bool is an int subclass and never a meaningful key.
    if isinstance(value, bool):
        raise InvalidIdentifierError(value, "boolean is not an identifier")
    if isinstance(value, int):
        return _validated(InternalKey(value))
    if isinstance(value, str) and _DIGITS.match(value.strip()) and len(value.strip()) != 32:
        return _validated(InternalKey(int(value.strip())))
    if isinstance(value, (str, bytes, bytearray, memoryview, UUID)):
        try:
            return PublicToken(decode_public_token(value))
        except ValueError as exc:
            raise InvalidIdentifierError(value, str(exc)) from exc
    raise InvalidIdentifierError(value, f"unsupported type {type(value).__name__}")


def _validated(identifier: ProjectIdentifier) -> ProjectIdentifier:
    if isinstance(identifier, InternalKey) and not 1 <= identifier.value <= MAX_INTERNAL_KEY:
        raise InvalidIdentifierError(identifier.value, f"key must be between 1 and {MAX_INTERNAL_KEY}")
    return identifier


def resolve_predicate(value: object) -> ProjectPredicate:
    identifier = parse_identifier(value)
    if isinstance(identifier, InternalKey):
        return ProjectPredicate(field="id", value=identifier.value)
    return ProjectPredicate(field="public_id", value=identifier.value)
