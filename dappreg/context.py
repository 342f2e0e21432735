"""
dappreg.context — per-call environment supplied by the host.

Every registry call carries the caller identity and, for registrations, the
attached payment. Hosts build a CallEnv per call and hand it to
dappreg.service.RegistryService.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from .errors import ValidationError
from .types import as_identity, to_hex


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ValidationError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ValidationError(f"{name} must be non-negative, got {v}")
    return v


@dataclass(frozen=True)
class CallEnv:
    """
    Fields
    ------
    caller:  identity of the account making the call (raw bytes).
    value:   payment attached to the call, in base units.
    """

    caller: bytes
    value: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "caller", as_identity(self.caller))
        object.__setattr__(self, "value", _require_non_negative_int("value", self.value))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CallEnv":
        return cls(caller=d.get("caller", b""), value=int(d.get("value", 0)))

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["caller"] = to_hex(self.caller)
        return d


__all__ = ["CallEnv"]
