from __future__ import annotations

"""
dappreg.fees — registration fee gate and collected-fee accounting
----------------------------------------------------------------

Holds the current registration fee and the balance accumulated from successful
registrations. Fee changes and withdrawals are administrator-only; the check is
delegated to AccessControl.

`drain` only *authorizes and computes* a withdrawal: it returns the full
collected balance and zeroes it. Moving the funds to the destination is done by
the host's value-transfer collaborator (see dappreg.treasury / dappreg.service).

Amounts are integer base units (no floats), 0 <= amount < 2**256.
"""

import logging

from .access import AccessControl
from .errors import InsufficientPayment, ValidationError
from .storage import Storage, get_u256, set_u256
from .types import as_identity

log = logging.getLogger(__name__)

FEE_KEY = b"fee:amount"
BALANCE_KEY = b"fee:balance"

_U256_MAX = (1 << 256) - 1


def _ensure_amount(x: int, name: str) -> int:
    if not isinstance(x, int) or isinstance(x, bool):
        raise ValidationError(f"{name} must be int, got {type(x).__name__}")
    if x < 0:
        raise ValidationError(f"{name} must be non-negative, got {x}")
    if x > _U256_MAX:
        raise ValidationError(f"{name} exceeds 256-bit limit")
    return x


class FeeGate:
    """
    Usage:
      gate = FeeGate(storage, access)
      gate.init_fee(10**18)
      gate.check_payment(paid)      # raises InsufficientPayment
      gate.collect(paid)
      amount = gate.drain(dest, caller=admin)
    """

    __slots__ = ("_storage", "_access")

    def __init__(self, storage: Storage, access: AccessControl) -> None:
        self._storage = storage
        self._access = access

    def init_fee(self, fee: int) -> None:
        """Set the initial fee unless the store already carries one."""
        if self._storage.exists(FEE_KEY):
            return
        set_u256(self._storage, FEE_KEY, _ensure_amount(fee, "fee"))

    # --- fee ---

    def fee(self) -> int:
        return get_u256(self._storage, FEE_KEY)

    def set_fee(self, new_fee: int, caller: bytes) -> None:
        self._access.require_administrator(caller)
        new_fee = _ensure_amount(new_fee, "fee")
        old = self.fee()
        set_u256(self._storage, FEE_KEY, new_fee)
        log.debug("fee changed %d -> %d", old, new_fee)

    def check_payment(self, paid: int) -> None:
        paid = _ensure_amount(paid, "paid")
        required = self.fee()
        if paid < required:
            raise InsufficientPayment(required=required, paid=paid)

    # --- balance ---

    def balance(self) -> int:
        return get_u256(self._storage, BALANCE_KEY)

    def collect(self, paid: int) -> None:
        paid = _ensure_amount(paid, "paid")
        total = self.balance() + paid
        if total > _U256_MAX:
            raise ValidationError("collected balance overflow")
        set_u256(self._storage, BALANCE_KEY, total)

    def drain(self, destination: bytes, caller: bytes) -> int:
        """
        Administrator-only: return the entire collected balance for transfer to
        `destination` and reset it to zero.
        """
        self._access.require_administrator(caller)
        destination = as_identity(destination)
        amount = self.balance()
        set_u256(self._storage, BALANCE_KEY, 0)
        log.debug("drained %d to %s", amount, destination.hex())
        return amount


__all__ = ["FeeGate", "FEE_KEY", "BALANCE_KEY"]
