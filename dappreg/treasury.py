"""
dappreg.treasury — minimal, deterministic balance ledger for local hosts.

The registry never moves funds itself. A host that runs the registry in-process
(tests, the CLI, dappreg.service) uses this ledger as its value-transfer
collaborator:

- balance_of(addr) -> int
- credit(addr, amount)
- debit(addr, amount)
- transfer(frm, to, amount)

Real deployments replace it with whatever settles value on their platform.
Deterministic: no wall-clock, no randomness, integer arithmetic with explicit caps.
"""

from __future__ import annotations

import threading
from typing import Dict, Mapping

from .errors import DappRegError, ValidationError
from .types import as_identity

MAX_BALANCE_BITS = 256


class InsufficientFunds(DappRegError):
    """Raised when an account lacks the balance for a debit or transfer."""

    code = "DAPPREG_INSUFFICIENT_FUNDS"


def _check_amount(amount: int) -> int:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ValidationError("amount must be int")
    if amount < 0:
        raise ValidationError("amount must be non-negative")
    if amount.bit_length() > MAX_BALANCE_BITS:
        raise ValidationError(f"amount exceeds {MAX_BALANCE_BITS}-bit limit")
    return amount


class Ledger:
    """Thread-safe in-memory account balances."""

    def __init__(self, balances: Mapping[bytes, int] | None = None) -> None:
        self._lock = threading.RLock()
        self._balances: Dict[bytes, int] = {}
        for addr, amount in (balances or {}).items():
            self.credit(addr, amount)

    def balance_of(self, addr: bytes) -> int:
        addr = as_identity(addr)
        with self._lock:
            return self._balances.get(addr, 0)

    def credit(self, addr: bytes, amount: int) -> None:
        addr = as_identity(addr)
        amount = _check_amount(amount)
        with self._lock:
            total = self._balances.get(addr, 0) + amount
            if total.bit_length() > MAX_BALANCE_BITS:
                raise ValidationError("balance overflow")
            self._balances[addr] = total

    def debit(self, addr: bytes, amount: int) -> None:
        addr = as_identity(addr)
        amount = _check_amount(amount)
        with self._lock:
            have = self._balances.get(addr, 0)
            if have < amount:
                raise InsufficientFunds(
                    "insufficient balance",
                    details={"addr": addr, "balance": have, "amount": amount},
                )
            self._balances[addr] = have - amount

    def transfer(self, frm: bytes, to: bytes, amount: int) -> None:
        frm, to = as_identity(frm), as_identity(to)
        amount = _check_amount(amount)
        with self._lock:
            # the credit must fit before anything is debited
            if frm != to and (self._balances.get(to, 0) + amount).bit_length() > MAX_BALANCE_BITS:
                raise ValidationError("balance overflow", details={"addr": to, "amount": amount})
            self.debit(frm, amount)
            self.credit(to, amount)

    def dump(self) -> Dict[str, int]:
        with self._lock:
            return {"0x" + a.hex(): v for a, v in sorted(self._balances.items())}

    @classmethod
    def load(cls, data: Mapping[str, int]) -> "Ledger":
        return cls({as_identity(a): int(v) for a, v in data.items()})


__all__ = ["Ledger", "InsufficientFunds"]
