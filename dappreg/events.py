from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .errors import ValidationError

log = logging.getLogger(__name__)

# Basic bounds.
MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Notification names emitted by the registry.
REGISTERED = b"Registered"
UNREGISTERED = b"Unregistered"
META_CHANGED = b"MetaChanged"
OWNER_CHANGED = b"OwnerChanged"
ADMINISTRATOR_CHANGED = b"AdministratorChanged"

ArgValue = Any  # constrained at runtime


@dataclass(frozen=True)
class Event:
    """One emitted notification."""

    name: bytes
    args: Dict[str, ArgValue]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name.decode("ascii", "replace"), "args": _encode_args(self.args)}


@dataclass(frozen=True)
class CanonicalEvent:
    """
    Canonical event representation for receipts and persistence:

        name: "0x" + hex-encoded event name bytes
        args: sequence of {"k", "t", "v"} dicts
              t="b" => bytes encoded as 0x-prefixed hex
              t="i" => integer
              t="z" => boolean
    """

    name: str
    args: Sequence[Mapping[str, Any]]


def _check_name(name: Any) -> bytes:
    if not isinstance(name, (bytes, bytearray)):
        raise ValidationError("event name must be bytes", details={"where": "name_type"})
    b = bytes(name)
    if len(b) == 0:
        raise ValidationError("event name must be non-empty", details={"where": "name_empty"})
    if len(b) > MAX_EVENT_NAME_BYTES:
        raise ValidationError("event name too long", details={"where": "name_length", "len": len(b)})
    return b


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise ValidationError("event key must be a non-empty str", details={"where": "key_type"})
    if len(key) > MAX_KEY_LEN:
        raise ValidationError("event key too long", details={"where": "key_length", "len": len(key)})
    if not _KEY_RE.match(key):
        raise ValidationError("event key has invalid characters", details={"where": "key_grammar", "key": key})
    return key


def _check_value(value: Any) -> ArgValue:
    if isinstance(value, (bytes, bytearray)):
        b = bytes(value)
        if len(b) > MAX_BYTES_LEN:
            raise ValidationError("event bytes arg too long", details={"where": "value_bytes_length", "len": len(b)})
        return b

    if isinstance(value, bool):
        # bool is a subclass of int, so check it before int.
        return value

    if isinstance(value, int):
        if value.bit_length() > MAX_INT_BITS:
            raise ValidationError("event int arg out of range", details={"where": "value_int_bits"})
        return int(value)

    raise ValidationError(
        "unsupported event arg type",
        details={"where": "value_type", "py_type": type(value).__name__},
    )


def make_event(name: bytes, args: Mapping[Any, Any]) -> Event:
    """Validate `name`/`args` and build an Event."""
    bname = _check_name(name)
    if not isinstance(args, Mapping):
        raise ValidationError("event args must be a mapping", details={"where": "args_type"})
    checked: Dict[str, ArgValue] = {}
    for raw_k, raw_v in args.items():
        checked[_check_key(raw_k)] = _check_value(raw_v)
    return Event(bname, checked)


def _encode_args(args: Mapping[str, ArgValue]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for k, v in args.items():
        if isinstance(v, (bytes, bytearray)):
            out.append({"k": k, "t": "b", "v": "0x" + bytes(v).hex()})
        elif isinstance(v, bool):
            out.append({"k": k, "t": "z", "v": v})
        else:
            out.append({"k": k, "t": "i", "v": int(v)})
    return out


def _decode_args(items: Iterable[Mapping[str, Any]]) -> Dict[str, ArgValue]:
    args: Dict[str, ArgValue] = {}
    for item in items:
        t, v = item.get("t"), item.get("v")
        if t == "b":
            s = str(v)
            args[str(item["k"])] = bytes.fromhex(s[2:] if s.startswith("0x") else s)
        elif t == "z":
            args[str(item["k"])] = bool(v)
        elif t == "i":
            args[str(item["k"])] = int(v)
        else:
            raise ValidationError(f"unknown event arg tag {t!r}")
    return args


def _decode_event(item: Mapping[str, Any]) -> Event:
    raw = str(item["name"])
    try:
        name = bytes.fromhex(raw[2:] if raw.startswith("0x") else raw)
    except ValueError as e:
        raise ValidationError(f"invalid event name {raw!r}") from e
    return Event(name, _decode_args(item.get("args") or ()))


class EventLog:
    """
    Append-only, ordered notification log.

    Emission can be staged: between `begin()` and `commit()` events are held
    back, and `rollback()` discards them, so a failed operation publishes
    nothing.
    """

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._staged: Optional[List[Event]] = None

    # --- staging ---------------------------------------------------------------

    def begin(self) -> None:
        if self._staged is not None:
            raise ValidationError("event batch already open")
        self._staged = []

    def commit(self) -> None:
        staged, self._staged = self._staged or [], None
        self._events.extend(staged)

    def rollback(self) -> None:
        if self._staged:
            log.debug("discarding %d staged event(s)", len(self._staged))
        self._staged = None

    # --- core operations ---------------------------------------------------------

    def emit(self, name: bytes, args: Mapping[Any, Any]) -> Event:
        ev = make_event(name, args)
        if self._staged is not None:
            self._staged.append(ev)
        else:
            self._events.append(ev)
        return ev

    def extend(self, events: Iterable[Event]) -> List[Event]:
        """
        Append several events in order, validated and staged like `emit`. If any
        one is invalid none are added.
        """
        checked = [make_event(ev.name, ev.args) for ev in events]
        (self._events if self._staged is None else self._staged).extend(checked)
        return checked

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> List[Event]:
        return list(self._events)

    def since(self, n: int) -> List[Event]:
        """Events published after the first `n` (cursor-style reads)."""
        return list(self._events[max(0, int(n)) :])

    def filter(self, name: bytes) -> List[Event]:
        return [e for e in self._events if e.name == name]

    def for_receipt(self) -> List[CanonicalEvent]:
        return [
            CanonicalEvent(name="0x" + ev.name.hex(), args=tuple(_encode_args(ev.args)))
            for ev in self._events
        ]

    # --- persistence -------------------------------------------------------------

    def dump(self) -> List[Dict[str, Any]]:
        return [{"name": c.name, "args": list(c.args)} for c in self.for_receipt()]

    @classmethod
    def load(cls, data: Iterable[Mapping[str, Any]]) -> "EventLog":
        out = cls()
        out.extend(_decode_event(item) for item in data)
        return out


__all__ = [
    "Event",
    "CanonicalEvent",
    "EventLog",
    "make_event",
    "REGISTERED",
    "UNREGISTERED",
    "META_CHANGED",
    "OWNER_CHANGED",
    "ADMINISTRATOR_CHANGED",
    "MAX_EVENT_NAME_BYTES",
    "MAX_KEY_LEN",
    "MAX_BYTES_LEN",
    "MAX_INT_BITS",
]
