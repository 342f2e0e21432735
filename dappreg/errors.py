from __future__ import annotations
# dappreg/errors.py
"""
Error types for the dapp registry. Every failure the registry can report is an
ordinary, expected outcome that callers must handle; each one aborts the single
operation that raised it with no partial state change.

Exports:
- DappRegError (base)
- Unauthorized
- NotRegistered
- IdTaken
- InvalidId
- InsufficientPayment
- IndexOutOfRange
- ValidationError
"""

import json
from typing import Any, Dict, Mapping, Optional


def _hex(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    return v


class DappRegError(Exception):
    """Base class for registry errors."""

    code: str = "DAPPREG_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = {k: _hex(v) for k, v in (details or {}).items()}
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class Unauthorized(DappRegError):
    """Caller lacks the required privilege (not administrator, not id owner, or neither)."""

    code = "DAPPREG_UNAUTHORIZED"

    def __init__(
        self,
        message: str = "caller is not authorized",
        *,
        caller: Optional[bytes] = None,
        required: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if caller is not None:
            d.setdefault("caller", caller)
        if required is not None:
            d.setdefault("required", required)
        super().__init__(message, details=d)


class NotRegistered(DappRegError):
    """Referenced id has no current entry."""

    code = "DAPPREG_NOT_REGISTERED"

    def __init__(
        self,
        message: str = "dapp is not registered",
        *,
        dapp_id: Optional[bytes] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if dapp_id is not None:
            d.setdefault("id", dapp_id)
        super().__init__(message, details=d)


class IdTaken(DappRegError):
    """Registration attempted against an id that is already present."""

    code = "DAPPREG_ID_TAKEN"

    def __init__(
        self,
        message: str = "dapp id is already registered",
        *,
        dapp_id: Optional[bytes] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if dapp_id is not None:
            d.setdefault("id", dapp_id)
        super().__init__(message, details=d)


class InvalidId(DappRegError):
    """Id is the reserved all-zero value or cannot be encoded as 32 bytes."""

    code = "DAPPREG_INVALID_ID"


class InsufficientPayment(DappRegError):
    """Attached payment is below the current registration fee."""

    code = "DAPPREG_INSUFFICIENT_PAYMENT"

    def __init__(
        self,
        *,
        required: int,
        paid: int,
        message: str = "payment below registration fee",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"required": int(required), "paid": int(paid)})
        self.required = int(required)
        self.paid = int(paid)
        super().__init__(message, details=d)


class IndexOutOfRange(DappRegError):
    """Positional lookup beyond the index list's length."""

    code = "DAPPREG_INDEX_OUT_OF_RANGE"

    def __init__(
        self,
        *,
        index: int,
        count: int,
        message: str = "index out of range",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"index": int(index), "count": int(count)})
        super().__init__(message, details=d)


class ValidationError(DappRegError):
    """Malformed host input: bad hex, negative amount, oversize key, unknown operation."""

    code = "DAPPREG_VALIDATION"


__all__ = [
    "DappRegError",
    "Unauthorized",
    "NotRegistered",
    "IdTaken",
    "InvalidId",
    "InsufficientPayment",
    "IndexOutOfRange",
    "ValidationError",
]
