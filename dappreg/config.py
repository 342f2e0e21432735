"""
dappreg.config — registry defaults, storage caps and host settings.

Configuration precedence:
  1) Environment variables (DAPPREG_*)
  2) Hardcoded safe defaults below

Key env vars:
  - DAPPREG_DEFAULT_FEE                (int)   default: 10**18 (one whole coin)
  - DAPPREG_MAX_STORAGE_KEY_BYTES      (int)   default: 128
  - DAPPREG_MAX_STORAGE_VALUE_BYTES    (int)   default: 4096
  - DAPPREG_STATE                      (path)  default: ./dappreg_state.json
  - DAPPREG_LOG_LEVEL                  (str)   default: WARNING

Identifiers, metadata keys and metadata values are fixed 32-byte words; that
width is part of the data model and is not configurable.

Usage:
    from dappreg.config import load_config
    CFG = load_config()
    registry = DappRegistry(admin, fee=CFG.default_fee)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

# Fixed width of identifiers and metadata words.
WORD_BYTES = 32

# 1 coin = 10**18 base units.
ONE_COIN = 10**18

_U256_MAX = (1 << 256) - 1


# ----------------------------- helpers ---------------------------------------


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw.replace("_", ""), 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_path(name: str, default: str) -> Path:
    raw = os.getenv(name) or default
    return Path(raw).expanduser()


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class RegistryConfig:
    # Registration fee applied when a registry is first initialised
    default_fee: int

    # Storage caps (enforced by dappreg.storage.Storage)
    max_storage_key_bytes: int
    max_storage_value_bytes: int

    # Host settings (CLI)
    state_path: Path
    log_level: str

    def with_overrides(self, **kw: Any) -> "RegistryConfig":
        return replace(self, **kw)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "default_fee": self.default_fee,
            "max_storage_key_bytes": self.max_storage_key_bytes,
            "max_storage_value_bytes": self.max_storage_value_bytes,
            "state_path": str(self.state_path),
            "log_level": self.log_level,
        }


@lru_cache(maxsize=1)
def load_config() -> RegistryConfig:
    """
    Build and cache a RegistryConfig from environment + safe defaults.
    """
    level = (os.getenv("DAPPREG_LOG_LEVEL") or "WARNING").strip().upper()
    return RegistryConfig(
        default_fee=_env_int("DAPPREG_DEFAULT_FEE", ONE_COIN, min_v=1, max_v=_U256_MAX),
        max_storage_key_bytes=_env_int("DAPPREG_MAX_STORAGE_KEY_BYTES", 128, min_v=80, max_v=1024),
        max_storage_value_bytes=_env_int("DAPPREG_MAX_STORAGE_VALUE_BYTES", 4096, min_v=64, max_v=1_048_576),
        state_path=_env_path("DAPPREG_STATE", "dappreg_state.json"),
        log_level=level,
    )


__all__ = ["RegistryConfig", "load_config", "WORD_BYTES", "ONE_COIN"]
