from __future__ import annotations

"""
storage — deterministic in-memory key/value substrate for the registry.

Goals
-----
- Pure-Python, byte-oriented get/set/delete with strict validation of keys and
  values (sizes capped by dappreg.config).
- Snapshots to support all-or-nothing operations: the registry takes a
  snapshot before mutating and restores it if any check fails.
- JSON-friendly dump/load so a host can persist state between processes.

Durable storage is the host's concern; this store mirrors only the surface the
registry needs.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .config import RegistryConfig, load_config
from .errors import ValidationError

_U256_MAX = (1 << 256) - 1

# ---------------- Helpers ----------------


def _ensure_bytes(name: str, v: bytes, *, allow_empty: bool = False) -> bytes:
    if not isinstance(v, (bytes, bytearray)):
        raise ValidationError(f"{name} must be bytes, got {type(v).__name__}")
    if not allow_empty and len(v) == 0:
        raise ValidationError(f"{name} must be non-empty bytes")
    return bytes(v)


def _clamp_size(name: str, v: bytes, *, max_len: int) -> bytes:
    if len(v) > max_len:
        raise ValidationError(f"{name} length {len(v)} exceeds max {max_len}")
    return v


# ---------------- Storage Core ----------------


class Storage:
    """
    Storage(config=None)
    --------------------
    .get(key) -> bytes | None
    .set(key, value) -> None
    .delete(key) -> bool
    .exists(key) -> bool
    .items(prefix=b"") -> iterator[(key, value)]
    .snapshot() / .restore(snap)
    .dump() / Storage.load(data)
    """

    __slots__ = ("_kv", "_max_key", "_max_value")

    def __init__(self, config: Optional[RegistryConfig] = None) -> None:
        cfg = config or load_config()
        self._kv: Dict[bytes, bytes] = {}
        self._max_key = int(cfg.max_storage_key_bytes)
        self._max_value = int(cfg.max_storage_value_bytes)

    def _key(self, key: bytes) -> bytes:
        key = _ensure_bytes("key", key)
        return _clamp_size("key", key, max_len=self._max_key)

    # -------- Basic API --------

    def get(self, key: bytes) -> Optional[bytes]:
        return self._kv.get(self._key(key))

    def set(self, key: bytes, value: bytes) -> None:
        key = self._key(key)
        value = _ensure_bytes("value", value, allow_empty=True)
        value = _clamp_size("value", value, max_len=self._max_value)
        self._kv[key] = value

    def delete(self, key: bytes) -> bool:
        return self._kv.pop(self._key(key), None) is not None

    def exists(self, key: bytes) -> bool:
        return self._key(key) in self._kv

    def items(self, *, prefix: bytes = b"") -> Iterator[Tuple[bytes, bytes]]:
        prefix = _ensure_bytes("prefix", prefix, allow_empty=True)
        # Sorted so iteration order never depends on insertion history.
        for k in sorted(self._kv):
            if prefix and not k.startswith(prefix):
                continue
            yield k, self._kv[k]

    def __len__(self) -> int:
        return len(self._kv)

    # -------- Snapshots --------

    @dataclass(frozen=True)
    class Snapshot:
        data: Tuple[Tuple[bytes, bytes], ...]  # immutable

    def snapshot(self) -> "Storage.Snapshot":
        return Storage.Snapshot(tuple(self._kv.items()))

    def restore(self, snap: "Storage.Snapshot") -> None:
        if not isinstance(snap, Storage.Snapshot):
            raise ValidationError("invalid snapshot object")
        self._kv = dict(snap.data)

    # -------- Persistence --------

    def dump(self) -> Dict[str, str]:
        return {"0x" + k.hex(): "0x" + v.hex() for k, v in self.items()}

    @classmethod
    def load(cls, data: Mapping[str, str], config: Optional[RegistryConfig] = None) -> "Storage":
        st = cls(config)
        for k, v in data.items():
            try:
                kb = bytes.fromhex(k[2:] if k.startswith("0x") else k)
                vb = bytes.fromhex(v[2:] if v.startswith("0x") else v)
            except ValueError as e:
                raise ValidationError(f"invalid storage dump entry {k!r}") from e
            st.set(kb, vb)
        return st


# ---------------- Convenience (U256 encode/decode) ----------------


def u256_encode(n: int) -> bytes:
    """Encode a non-negative int into a fixed 32-byte big-endian representation."""
    if not isinstance(n, int) or isinstance(n, bool) or n < 0:
        raise ValidationError("u256 must be non-negative int")
    if n > _U256_MAX:
        raise ValidationError("u256 overflow")
    return n.to_bytes(32, "big")


def u256_decode(b: bytes) -> int:
    """Decode a fixed 32-byte big-endian into int."""
    b = _ensure_bytes("u256", b)
    if len(b) != 32:
        raise ValidationError("u256 must be exactly 32 bytes")
    return int.from_bytes(b, "big")


def get_u256(store: Storage, key: bytes, default: int = 0) -> int:
    raw = store.get(key)
    if raw is None:
        return default
    return u256_decode(raw)


def set_u256(store: Storage, key: bytes, value: int) -> None:
    store.set(key, u256_encode(value))


__all__ = [
    "Storage",
    "u256_encode",
    "u256_decode",
    "get_u256",
    "set_u256",
]
