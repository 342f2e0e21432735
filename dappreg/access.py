# -*- coding: utf-8 -*-
"""
dappreg.access
==============

Administrator storage and the two privilege checks of the registry.

This module provides:
- pure guard predicates over ``(caller, target-state)``:
  ``is_administrator``, ``is_owner``, ``is_owner_or_administrator``
- ``require_*`` counterparts that raise :class:`~dappreg.errors.Unauthorized`
- :class:`AccessControl`, which persists the single administrator identity and
  supports one-step transfer of that role.

Conventions
-----------
- Identities are ``bytes``; the empty identity never passes a check.
- The administrator is stored at ``ADMIN_KEY = b"access:admin"``.
- Events:
    - ``AdministratorChanged`` args: ``{"old": bytes, "new": bytes}``

Typical usage
-------------
    access = AccessControl(storage, events)
    access.init_administrator(deployer)

    def set_fee(new_fee, caller):
        access.require_administrator(caller)
        # ... privileged logic ...
"""
from __future__ import annotations

import logging
from typing import Optional

from .errors import Unauthorized, ValidationError
from .events import ADMINISTRATOR_CHANGED, EventLog
from .storage import Storage
from .types import Entry, as_identity

log = logging.getLogger(__name__)

ADMIN_KEY: bytes = b"access:admin"

__all__ = [
    "ADMIN_KEY",
    "is_administrator",
    "is_owner",
    "is_owner_or_administrator",
    "require_administrator",
    "require_owner",
    "require_owner_or_administrator",
    "AccessControl",
]


# --- Guard predicates ---------------------------------------------------------


def is_administrator(caller: bytes, administrator: Optional[bytes]) -> bool:
    return bool(caller) and administrator is not None and caller == administrator


def is_owner(caller: bytes, entry: Entry) -> bool:
    return bool(caller) and caller == entry.owner


def is_owner_or_administrator(caller: bytes, entry: Entry, administrator: Optional[bytes]) -> bool:
    return is_owner(caller, entry) or is_administrator(caller, administrator)


def require_administrator(caller: bytes, administrator: Optional[bytes]) -> None:
    if not is_administrator(caller, administrator):
        raise Unauthorized("caller is not the registry administrator", caller=caller, required="administrator")


def require_owner(caller: bytes, entry: Entry) -> None:
    if not is_owner(caller, entry):
        raise Unauthorized(
            "caller is not the dapp owner",
            caller=caller,
            required="owner",
            details={"id": entry.id},
        )


def require_owner_or_administrator(caller: bytes, entry: Entry, administrator: Optional[bytes]) -> None:
    if not is_owner_or_administrator(caller, entry, administrator):
        raise Unauthorized(
            "caller is neither the dapp owner nor the registry administrator",
            caller=caller,
            required="owner|administrator",
            details={"id": entry.id},
        )


# --- Administrator storage ------------------------------------------------------


class AccessControl:
    """Holds the registry administrator identity."""

    def __init__(self, storage: Storage, events: EventLog) -> None:
        self._storage = storage
        self._events = events

    def init_administrator(self, administrator: bytes) -> None:
        """
        Set the administrator. Idempotent: an already initialised store keeps
        its administrator.
        """
        if self._storage.get(ADMIN_KEY):
            return
        self._storage.set(ADMIN_KEY, as_identity(administrator))

    def administrator(self) -> bytes:
        v = self._storage.get(ADMIN_KEY)
        if not v:
            raise ValidationError("registry administrator is not initialised")
        return v

    def require_administrator(self, caller: bytes) -> None:
        require_administrator(caller, self._storage.get(ADMIN_KEY))

    def transfer_administrator(self, new: bytes, caller: bytes) -> None:
        """
        Administrator-only: hand the role to `new` (must be non-empty).

        Emits:
            - "AdministratorChanged" with {"old": <previous>, "new": <new>}
        """
        self.require_administrator(caller)
        new = as_identity(new)
        old = self.administrator()
        self._storage.set(ADMIN_KEY, new)
        self._events.emit(ADMINISTRATOR_CHANGED, {"old": old, "new": new})
        log.debug("administrator changed %s -> %s", old.hex(), new.hex())
