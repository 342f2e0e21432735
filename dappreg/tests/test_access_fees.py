"""
Administrator-only surface: fee changes, administrator hand-over and fee
withdrawal.
"""
from __future__ import annotations

import pytest

from dappreg.access import is_administrator, is_owner, is_owner_or_administrator
from dappreg.errors import InsufficientPayment, Unauthorized, ValidationError
from dappreg.events import ADMINISTRATOR_CHANGED
from dappreg.types import Entry, as_identifier

from .conftest import FEE


def test_default_fee_is_one_coin(registry):
    assert registry.fee() == FEE
    assert registry.balance() == 0


def test_administrator_sets_fee(registry, accounts):
    registry.set_fee(FEE * 2, caller=accounts["a0"])
    assert registry.fee() == FEE * 2
    # fee changes publish nothing
    assert len(registry.events) == 0

    with pytest.raises(InsufficientPayment) as exc:
        registry.register("pricey", FEE, accounts["a1"])
    assert exc.value.required == FEE * 2


def test_non_administrator_cannot_set_fee(registry, accounts):
    with pytest.raises(Unauthorized):
        registry.set_fee(1, caller=accounts["a1"])
    assert registry.fee() == FEE


def test_zero_fee_allows_free_registration(registry, accounts):
    registry.set_fee(0, caller=accounts["a0"])
    registry.register("free", 0, accounts["a1"])
    assert registry.is_registered("free")
    assert registry.balance() == 0


@pytest.mark.parametrize("bad", [-1, 1 << 256, "10", True])
def test_fee_must_be_a_u256(registry, accounts, bad):
    with pytest.raises(ValidationError):
        registry.set_fee(bad, caller=accounts["a0"])
    assert registry.fee() == FEE


def test_transfer_administrator(registered, accounts):
    a0, a2 = accounts["a0"], accounts["a2"]
    before = len(registered.events)

    registered.transfer_administrator(a2, caller=a0)
    assert registered.administrator() == a2

    changed = registered.events.since(before)
    assert len(changed) == 1
    assert changed[0].name == ADMINISTRATOR_CHANGED
    assert changed[0].args == {"old": a0, "new": a2}

    # the old administrator has no privileges left
    with pytest.raises(Unauthorized):
        registered.set_fee(1, caller=a0)
    with pytest.raises(Unauthorized):
        registered.drain(a0, caller=a0)
    with pytest.raises(Unauthorized):
        registered.unregister("awesome", caller=a0)

    # the new one has all of them
    registered.set_fee(1, caller=a2)
    assert registered.fee() == 1
    registered.unregister("awesome", caller=a2)
    assert not registered.is_registered("awesome")


def test_only_administrator_transfers_role(registry, accounts):
    with pytest.raises(Unauthorized):
        registry.transfer_administrator(accounts["a1"], caller=accounts["a1"])
    assert registry.administrator() == accounts["a0"]
    assert registry.events.filter(ADMINISTRATOR_CHANGED) == []


def test_transfer_to_empty_identity_is_rejected(registry, accounts):
    with pytest.raises(ValidationError):
        registry.transfer_administrator(b"", caller=accounts["a0"])
    assert registry.administrator() == accounts["a0"]


def test_drain_returns_and_zeroes_balance(registry, accounts):
    registry.register("one", FEE, accounts["a1"])
    registry.register("two", FEE * 2, accounts["a2"])
    assert registry.balance() == FEE * 3

    with pytest.raises(Unauthorized):
        registry.drain(accounts["a1"], caller=accounts["a1"])
    assert registry.balance() == FEE * 3

    assert registry.drain(accounts["a3"], caller=accounts["a0"]) == FEE * 3
    assert registry.balance() == 0
    assert registry.drain(accounts["a3"], caller=accounts["a0"]) == 0


def test_guard_predicates(accounts):
    a0, a1 = accounts["a0"], accounts["a1"]
    entry = Entry(as_identifier("x"), a1)

    assert is_administrator(a0, a0)
    assert not is_administrator(a1, a0)
    assert not is_administrator(b"", b"")
    assert not is_administrator(a0, None)

    assert is_owner(a1, entry)
    assert not is_owner(a0, entry)

    assert is_owner_or_administrator(a0, entry, a0)
    assert is_owner_or_administrator(a1, entry, a0)
    assert not is_owner_or_administrator(accounts["a2"], entry, a0)


@pytest.mark.parametrize("zero", [b"\x00" * 32, "0x" + "00" * 32])
def test_zero_identity_cannot_become_administrator(registry, accounts, zero):
    with pytest.raises(ValidationError):
        registry.transfer_administrator(zero, caller=accounts["a0"])
    assert registry.administrator() == accounts["a0"]
    assert registry.events.filter(ADMINISTRATOR_CHANGED) == []
    # the role still works
    registry.set_fee(3, caller=accounts["a0"])
    assert registry.fee() == 3
