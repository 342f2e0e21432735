# -*- coding: utf-8 -*-
"""
dappreg.registry
================

The dapp registry: a fee-gated, ownership-gated table of 32-byte dapp ids.

Each id maps to an owning identity plus a per-id metadata namespace. Ids are
also appended to an index list on registration so they can be enumerated by
position.

Storage layout
--------------
    "dr:own:" + id(32)      -> owner identity        (present iff registered)
    "dr:ix:"  + u256(i)     -> id at position i      (append-only, never compacted)
    "dr:cnt"                -> u256 length of the index list
    "dr:meta:" + id + key   -> value                 (see dappreg.metadata)
    "access:admin"          -> administrator         (see dappreg.access)
    "fee:amount" / "fee:balance"                     (see dappreg.fees)

Events
------
- ``Registered``            ``{id, owner}``
- ``Unregistered``          ``{id}``
- ``MetaChanged``           ``{id, key, value}``
- ``OwnerChanged``          ``{id, owner}``
- ``AdministratorChanged``  ``{old, new}``

Errors
------
``Unauthorized``, ``NotRegistered``, ``IdTaken``, ``InvalidId``,
``InsufficientPayment``, ``IndexOutOfRange`` (see dappreg.errors).

Atomicity
---------
Every mutating operation runs inside ``transaction()``: storage is snapshotted and
events are staged; any exception restores the snapshot and discards the staged
events, so a failed call changes nothing.

Unregistering removes the owner record and the metadata but leaves the id in
the index list. ``at(i)`` on such a stale position raises ``NotRegistered``
unless the id has been registered again.

Typical usage
-------------
    reg = DappRegistry(administrator=admin, fee=10**18)
    reg.register("awesome", paid=10**18, caller=alice)
    reg.set_meta("awesome", "key", "value", caller=alice)
    reg.get("awesome")          # Entry(id=b"awesome\\x00...", owner=alice)
    reg.at(0)                   # same Entry
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Final, Iterator, Mapping, Optional

from .access import AccessControl, require_owner, require_owner_or_administrator
from .config import RegistryConfig, load_config
from .errors import IndexOutOfRange, IdTaken, NotRegistered, ValidationError
from .events import META_CHANGED, OWNER_CHANGED, REGISTERED, UNREGISTERED, EventLog
from .fees import FeeGate
from .metadata import MetadataStore
from .storage import Storage, get_u256, set_u256, u256_encode
from .types import Entry, WordLike, as_identifier, as_identity, as_word

log = logging.getLogger(__name__)

# -------- Storage prefixes --------
_P_OWN: Final[bytes] = b"dr:own:"
_P_IX: Final[bytes] = b"dr:ix:"
_K_CNT: Final[bytes] = b"dr:cnt"

STATE_FORMAT: Final[int] = 1


class DappRegistry:
    """Registry context: owns storage, event log, access control, fee gate and metadata."""

    def __init__(
        self,
        administrator: Optional[bytes] = None,
        *,
        fee: Optional[int] = None,
        storage: Optional[Storage] = None,
        events: Optional[EventLog] = None,
        config: Optional[RegistryConfig] = None,
    ) -> None:
        self.config = config or load_config()
        self._storage = storage if storage is not None else Storage(self.config)
        self._events = events if events is not None else EventLog()
        self.access = AccessControl(self._storage, self._events)
        self.fees = FeeGate(self._storage, self.access)
        self.metadata = MetadataStore(self._storage)
        self._depth = 0

        if administrator is not None:
            self.access.init_administrator(as_identity(administrator))
        # Fails loudly when neither the arguments nor the store provide an administrator.
        self.access.administrator()
        self.fees.init_fee(self.config.default_fee if fee is None else fee)

    # ------------------------------------------------------------------ internals

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def events(self) -> EventLog:
        return self._events

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        All-or-nothing scope. Nested scopes join the outermost one; a host can
        wrap a registry call together with its own side effects.
        """
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return
        snap = self._storage.snapshot()
        self._events.begin()
        self._depth = 1
        try:
            yield
        except BaseException:
            self._storage.restore(snap)
            self._events.rollback()
            raise
        else:
            self._events.commit()
        finally:
            self._depth = 0

    def _owner_of(self, id_: bytes) -> Optional[bytes]:
        return self._storage.get(_P_OWN + id_)

    def _entry(self, id_: bytes) -> Entry:
        owner = self._owner_of(id_)
        if not owner:
            raise NotRegistered(dapp_id=id_)
        return Entry(id=id_, owner=owner)

    # ------------------------------------------------------------------ reads

    def count(self) -> int:
        """Number of positions in the index list, stale positions included."""
        return get_u256(self._storage, _K_CNT)

    def at(self, index: int) -> Entry:
        if not isinstance(index, int) or isinstance(index, bool):
            raise ValidationError(f"index must be int, got {type(index).__name__}")
        n = self.count()
        if index < 0 or index >= n:
            raise IndexOutOfRange(index=index, count=n)
        id_ = self._storage.get(_P_IX + u256_encode(index))
        if not id_:
            raise NotRegistered(details={"index": index})
        return self._entry(id_)

    def get(self, dapp_id: WordLike) -> Entry:
        return self._entry(as_identifier(dapp_id))

    def is_registered(self, dapp_id: WordLike) -> bool:
        return bool(self._owner_of(as_identifier(dapp_id)))

    def meta(self, dapp_id: WordLike, key: WordLike) -> bytes:
        entry = self.get(dapp_id)
        return self.metadata.get(entry.id, as_word(key))

    # ------------------------------------------------------------------ dapp lifecycle

    def register(self, dapp_id: WordLike, paid: int, caller: bytes) -> Entry:
        """
        Register `dapp_id` to `caller`. Requires `paid >= fee()`.

        Emits:
            - b"Registered" {id, owner}
        """
        id_ = as_identifier(dapp_id)
        caller = as_identity(caller)
        with self.transaction():
            self.fees.check_payment(paid)
            if self._owner_of(id_):
                raise IdTaken(dapp_id=id_)
            n = self.count()
            self._storage.set(_P_IX + u256_encode(n), id_)
            set_u256(self._storage, _K_CNT, n + 1)
            self._storage.set(_P_OWN + id_, caller)
            self.fees.collect(paid)
            self._events.emit(REGISTERED, {"id": id_, "owner": caller})
        log.debug("registered %s at index %d owner=%s", id_.hex(), n, caller.hex())
        return Entry(id=id_, owner=caller)

    def unregister(self, dapp_id: WordLike, caller: bytes) -> None:
        """
        Remove the entry and its metadata. Allowed for the dapp owner or the
        registry administrator. The index list is not compacted.

        Emits:
            - b"Unregistered" {id}
        """
        id_ = as_identifier(dapp_id)
        caller = as_identity(caller)
        with self.transaction():
            entry = self._entry(id_)
            require_owner_or_administrator(caller, entry, self.access.administrator())
            self._storage.delete(_P_OWN + id_)
            cleared = self.metadata.clear(id_)
            self._events.emit(UNREGISTERED, {"id": id_})
        log.debug("unregistered %s (cleared %d metadata keys)", id_.hex(), cleared)

    def set_meta(self, dapp_id: WordLike, key: WordLike, value: WordLike, caller: bytes) -> None:
        """
        Owner-only: store `value` under `key` for the dapp.

        Emits:
            - b"MetaChanged" {id, key, value}
        """
        id_ = as_identifier(dapp_id)
        caller = as_identity(caller)
        k, v = as_word(key), as_word(value)
        with self.transaction():
            entry = self._entry(id_)
            require_owner(caller, entry)
            self.metadata.set(id_, k, v)
            self._events.emit(META_CHANGED, {"id": id_, "key": k, "value": v})

    def set_dapp_owner(self, dapp_id: WordLike, new_owner: bytes, caller: bytes) -> Entry:
        """
        Owner-only: hand the dapp to `new_owner`.

        Emits:
            - b"OwnerChanged" {id, owner}
        """
        id_ = as_identifier(dapp_id)
        caller = as_identity(caller)
        with self.transaction():
            entry = self._entry(id_)
            require_owner(caller, entry)
            new_owner = as_identity(new_owner)
            self._storage.set(_P_OWN + id_, new_owner)
            self._events.emit(OWNER_CHANGED, {"id": id_, "owner": new_owner})
        log.debug("owner of %s changed %s -> %s", id_.hex(), entry.owner.hex(), new_owner.hex())
        return Entry(id=id_, owner=new_owner)

    # ------------------------------------------------------------------ administration

    def administrator(self) -> bytes:
        return self.access.administrator()

    def transfer_administrator(self, new: bytes, caller: bytes) -> None:
        with self.transaction():
            self.access.transfer_administrator(new, as_identity(caller))

    def fee(self) -> int:
        return self.fees.fee()

    def set_fee(self, new_fee: int, caller: bytes) -> None:
        with self.transaction():
            self.fees.set_fee(new_fee, as_identity(caller))

    def balance(self) -> int:
        """Fees collected since the last drain."""
        return self.fees.balance()

    def drain(self, destination: bytes, caller: bytes) -> int:
        """
        Administrator-only: zero the collected balance and return the amount
        owed to `destination`. The caller's host performs the transfer.
        """
        with self.transaction():
            return self.fees.drain(destination, as_identity(caller))

    # ------------------------------------------------------------------ persistence

    def dump(self) -> Dict[str, Any]:
        return {
            "format": STATE_FORMAT,
            "storage": self._storage.dump(),
            "events": self._events.dump(),
        }

    @classmethod
    def load(cls, data: Mapping[str, Any], config: Optional[RegistryConfig] = None) -> "DappRegistry":
        fmt = int(data.get("format", 0))
        if fmt != STATE_FORMAT:
            raise ValidationError(f"unsupported state format {fmt}", details={"expected": STATE_FORMAT})
        cfg = config or load_config()
        storage = Storage.load(data.get("storage") or {}, cfg)
        events = EventLog.load(data.get("events") or [])
        return cls(storage=storage, events=events, config=cfg)


__all__ = ["DappRegistry", "STATE_FORMAT"]
