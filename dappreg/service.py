from __future__ import annotations

"""
dappreg.service — in-process host for the registry.

RegistryService plays the execution environment around a DappRegistry:

  • Serialises every call through one lock, so the registry table, index list,
    administrator, fee and balance form a single mutual-exclusion domain.
  • Moves attached payments from the caller's ledger account into the registry's
    own account on registration, and settles `drain` by transferring the amount
    the registry reports to the destination.
  • Dispatches by operation name, accepting both the camelCase names of the
    public surface (setMeta, setDappOwner, ...) and their snake_case forms.

Usage
  svc = RegistryService(DappRegistry(admin), Ledger({alice: 10**18}))
  svc.call(CallEnv(alice, value=10**18), "register", "awesome")
  svc.call(CallEnv(admin), "drain", admin)
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from .context import CallEnv
from .errors import ValidationError
from .registry import DappRegistry
from .treasury import Ledger
from .types import as_identity

log = logging.getLogger(__name__)

# Account holding collected fees on the ledger.
DEFAULT_CONTRACT_ADDRESS = b"dappreg:contract"

_ALIASES: Dict[str, str] = {
    "setMeta": "set_meta",
    "setDappOwner": "set_dapp_owner",
    "setFee": "set_fee",
    "transferAdministrator": "transfer_administrator",
    "isRegistered": "is_registered",
    # legacy names from the contract surface
    "owner": "administrator",
    "setOwner": "transfer_administrator",
}


class RegistryService:
    __slots__ = ("registry", "ledger", "contract_address", "_lock", "_ops")

    def __init__(
        self,
        registry: DappRegistry,
        ledger: Optional[Ledger] = None,
        *,
        contract_address: bytes = DEFAULT_CONTRACT_ADDRESS,
    ) -> None:
        self.registry = registry
        self.ledger = ledger if ledger is not None else Ledger()
        self.contract_address = as_identity(contract_address)
        self._lock = threading.RLock()
        self._ops: Dict[str, Callable[..., Any]] = {
            "count": self._count,
            "at": self._at,
            "get": self._get,
            "is_registered": self._is_registered,
            "register": self._register,
            "unregister": self._unregister,
            "meta": self._meta,
            "set_meta": self._set_meta,
            "set_dapp_owner": self._set_dapp_owner,
            "fee": self._fee,
            "set_fee": self._set_fee,
            "administrator": self._administrator,
            "transfer_administrator": self._transfer_administrator,
            "balance": self._balance,
            "drain": self._drain,
        }

    @property
    def operations(self) -> Tuple[str, ...]:
        return tuple(sorted(self._ops))

    def call(self, env: CallEnv, op: str, *args: Any) -> Any:
        name = _ALIASES.get(op, op)
        fn = self._ops.get(name)
        if fn is None:
            raise ValidationError(f"unknown operation {op!r}", details={"known": ",".join(self.operations)})
        if env.value and name != "register":
            raise ValidationError(f"operation {op!r} does not accept a payment")
        with self._lock:
            return fn(env, *args)

    # ------------------------------------------------------------------ reads

    def _count(self, env: CallEnv) -> int:
        return self.registry.count()

    def _at(self, env: CallEnv, index: int):
        return self.registry.at(index)

    def _get(self, env: CallEnv, dapp_id: Any):
        return self.registry.get(dapp_id)

    def _is_registered(self, env: CallEnv, dapp_id: Any) -> bool:
        return self.registry.is_registered(dapp_id)

    def _meta(self, env: CallEnv, dapp_id: Any, key: Any) -> bytes:
        return self.registry.meta(dapp_id, key)

    def _fee(self, env: CallEnv) -> int:
        return self.registry.fee()

    def _administrator(self, env: CallEnv) -> bytes:
        return self.registry.administrator()

    def _balance(self, env: CallEnv) -> int:
        return self.registry.balance()

    # ------------------------------------------------------------------ writes

    def _register(self, env: CallEnv, dapp_id: Any):
        with self.registry.transaction():
            entry = self.registry.register(dapp_id, env.value, env.caller)
            # Raises InsufficientFunds, which rolls the registration back.
            self.ledger.transfer(env.caller, self.contract_address, env.value)
        log.info("registered %s for %s (paid %d)", entry.name, entry.owner.hex(), env.value)
        return entry

    def _unregister(self, env: CallEnv, dapp_id: Any) -> None:
        self.registry.unregister(dapp_id, env.caller)

    def _set_meta(self, env: CallEnv, dapp_id: Any, key: Any, value: Any) -> None:
        self.registry.set_meta(dapp_id, key, value, env.caller)

    def _set_dapp_owner(self, env: CallEnv, dapp_id: Any, new_owner: Any):
        return self.registry.set_dapp_owner(dapp_id, new_owner, env.caller)

    def _set_fee(self, env: CallEnv, new_fee: int) -> None:
        self.registry.set_fee(new_fee, env.caller)
        log.info("fee set to %d", new_fee)

    def _transfer_administrator(self, env: CallEnv, new: Any) -> None:
        self.registry.transfer_administrator(new, env.caller)
        log.info("administrator transferred to %s", as_identity(new).hex())

    def _drain(self, env: CallEnv, destination: Any = None) -> int:
        dest = as_identity(destination) if destination is not None else env.caller
        with self.registry.transaction():
            amount = self.registry.drain(dest, env.caller)
            if amount:
                self.ledger.transfer(self.contract_address, dest, amount)
        log.info("drained %d to %s", amount, dest.hex())
        return amount


__all__ = ["RegistryService", "DEFAULT_CONTRACT_ADDRESS"]
