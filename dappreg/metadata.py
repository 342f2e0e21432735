# -*- coding: utf-8 -*-
"""
dappreg.metadata
================

Per-dapp key/value metadata. Keys and values are 32-byte words.

This module does **not** perform authorization and does not check that the
dapp id is registered. The registry enforces both before calling in here.

Storage layout
--------------
    "dr:meta:" + id(32) + key(32)  -> value(32)

A missing key reads as the zero word; writing the zero word removes the key.
"""
from __future__ import annotations

from typing import Final

from .storage import Storage
from .types import ZERO_WORD, as_word

_P_META: Final[bytes] = b"dr:meta:"


def _k(id_: bytes, key: bytes) -> bytes:
    return _P_META + id_ + key


class MetadataStore:
    __slots__ = ("_storage",)

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def get(self, id_: bytes, key: bytes) -> bytes:
        """Return the stored value, or the zero word when the key is absent."""
        v = self._storage.get(_k(id_, as_word(key)))
        return v if v else ZERO_WORD

    def set(self, id_: bytes, key: bytes, value: bytes) -> None:
        k = _k(id_, as_word(key))
        value = as_word(value)
        if value == ZERO_WORD:
            self._storage.delete(k)
        else:
            self._storage.set(k, value)

    def clear(self, id_: bytes) -> int:
        """Remove every key stored for `id_`; returns how many were removed."""
        keys = [k for k, _ in self._storage.items(prefix=_P_META + id_)]
        for k in keys:
            self._storage.delete(k)
        return len(keys)


__all__ = ["MetadataStore"]
