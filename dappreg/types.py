"""
dappreg.types — identifiers, identities and the registry Entry record.

Identifiers, metadata keys and metadata values are fixed 32-byte words. Hosts
may pass them as:
  - bytes of at most 32 bytes (right-padded with zero bytes)
  - "0x"-prefixed hex encoding exactly 32 bytes
  - any other text, UTF-8 encoded and right-padded (at most 32 bytes)

The all-zero word is reserved as an identifier and means "absent".

Identities are opaque non-empty byte strings with at least one non-zero byte;
text is interpreted as hex (with or without "0x").
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union

from .config import WORD_BYTES
from .errors import InvalidId, ValidationError

BytesLike = Union[bytes, bytearray, memoryview]
WordLike = Union[bytes, bytearray, memoryview, str]

ZERO_ID: bytes = b"\x00" * WORD_BYTES
ZERO_WORD: bytes = ZERO_ID


# ----------------------------- helpers ----------------------------- #


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[BytesLike, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ValidationError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ValidationError(f"invalid hex string: {value!r}") from e
    raise ValidationError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: BytesLike) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def _is_word_hex(s: str) -> bool:
    if not s.startswith(("0x", "0X")) or len(s) != 2 + 2 * WORD_BYTES:
        return False
    try:
        bytes.fromhex(s[2:])
    except ValueError:
        return False
    return True


def _word(value: WordLike) -> bytes:
    """Return the 32-byte word for `value`; raises ValueError when it does not fit."""
    if isinstance(value, str):
        if _is_word_hex(value):
            return bytes.fromhex(value[2:])
        raw = value.encode("utf-8")
    elif isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
    else:
        raise TypeError(f"cannot convert type {type(value).__name__} to a 32-byte word")
    if len(raw) > WORD_BYTES:
        raise ValueError(f"value is {len(raw)} bytes, maximum is {WORD_BYTES}")
    return raw.ljust(WORD_BYTES, b"\x00")


def as_word(value: WordLike) -> bytes:
    """Coerce a metadata key or value to a 32-byte word."""
    try:
        return _word(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(str(e)) from e


def as_identifier(value: WordLike) -> bytes:
    """Coerce a dapp id to its 32-byte form; the all-zero id is rejected."""
    try:
        w = _word(value)
    except (TypeError, ValueError) as e:
        raise InvalidId(str(e)) from e
    if w == ZERO_ID:
        raise InvalidId("the zero id is reserved")
    return w


def as_identity(value: Union[BytesLike, str]) -> bytes:
    """Coerce a caller/owner identity; empty and all-zero identities are rejected."""
    b = to_bytes(value)
    if len(b) == 0:
        raise ValidationError("identity must be non-empty")
    if not any(b):
        raise ValidationError("the zero identity is reserved")
    return b


def word_to_text(word: BytesLike) -> str:
    """
    Best-effort reverse of the text encoding: strip zero padding and decode
    UTF-8; words that are not valid text are rendered as hex.
    """
    raw = bytes(word).rstrip(b"\x00")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return to_hex(word)


# ----------------------------- models ------------------------------ #


@dataclass(frozen=True)
class Entry:
    """
    The registered record for one dapp id.

    Fields
    ------
    id:     32-byte identifier.
    owner:  identity that registered the id or received it through
            an authorized ownership transfer.
    """

    id: bytes
    owner: bytes

    @property
    def name(self) -> str:
        return word_to_text(self.id)

    def as_tuple(self) -> tuple:
        return (self.id, self.owner)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": to_hex(self.id), "name": self.name, "owner": to_hex(self.owner)}


__all__ = [
    "ZERO_ID",
    "ZERO_WORD",
    "to_bytes",
    "to_hex",
    "as_word",
    "as_identifier",
    "as_identity",
    "word_to_text",
    "Entry",
]
