"""
Registry walkthrough and lookup tests:
- register → Registered event, count/at/get agree
- metadata is owner-only and readable back
- dapp ownership transfer is owner-only
- duplicate ids and unpaid registrations are rejected without events
"""
from __future__ import annotations

import pytest

from dappreg.errors import (
    IdTaken,
    IndexOutOfRange,
    InsufficientPayment,
    InvalidId,
    NotRegistered,
    Unauthorized,
    ValidationError,
)
from dappreg.events import META_CHANGED, OWNER_CHANGED, REGISTERED
from dappreg.types import ZERO_ID, Entry, as_identifier, as_word

from .conftest import FEE

AWESOME = as_identifier("awesome")


def test_register_new_dapp(registry, accounts):
    owner = accounts["a1"]
    entry = registry.register("awesome", FEE, owner)

    assert entry == Entry(id=AWESOME, owner=owner)

    events = registry.events.filter(REGISTERED)
    assert len(events) == 1
    assert events[0].args == {"id": AWESOME, "owner": owner}

    assert registry.count() == 1
    assert registry.at(0) == Entry(AWESOME, owner)
    assert registry.get("awesome") == Entry(AWESOME, owner)
    assert registry.get("awesome").name == "awesome"
    assert registry.balance() == FEE


def test_text_and_hex_ids_address_the_same_entry(registered):
    assert registered.get("0x" + AWESOME.hex()) == registered.get("awesome")
    assert registered.get(b"awesome") == registered.get("awesome")


def test_overpayment_is_accepted_and_collected(registry, accounts):
    registry.register("generous", FEE * 3, accounts["a2"])
    assert registry.balance() == FEE * 3


def test_owner_sets_metadata(registered, accounts):
    with pytest.raises(Unauthorized):
        registered.set_meta("awesome", "key", "value", caller=accounts["a0"])
    assert registered.events.filter(META_CHANGED) == []

    registered.set_meta("awesome", "key", "value", caller=accounts["a1"])

    events = registered.events.filter(META_CHANGED)
    assert len(events) == 1
    assert events[0].args == {"id": AWESOME, "key": as_word("key"), "value": as_word("value")}
    assert registered.meta("awesome", "key") == as_word("value")


def test_missing_metadata_key_reads_as_zero_word(registered):
    assert registered.meta("awesome", "nothing-here") == b"\x00" * 32


def test_owner_transfers_dapp(registered, accounts):
    a0, a1, a2 = accounts["a0"], accounts["a1"], accounts["a2"]

    with pytest.raises(Unauthorized):
        registered.set_dapp_owner("awesome", a0, caller=a2)
    assert registered.get("awesome").owner == a1

    registered.set_dapp_owner("awesome", a0, caller=a1)
    assert registered.get("awesome").owner == a0

    events = registered.events.filter(OWNER_CHANGED)
    assert len(events) == 1
    assert events[0].args == {"id": AWESOME, "owner": a0}

    # the previous owner has lost control
    with pytest.raises(Unauthorized):
        registered.set_meta("awesome", "k", "v", caller=a1)
    with pytest.raises(Unauthorized):
        registered.set_dapp_owner("awesome", a1, caller=a1)


def test_administrator_cannot_set_metadata_or_owner(registered, accounts):
    # only unregister is open to the administrator
    with pytest.raises(Unauthorized):
        registered.set_dapp_owner("awesome", accounts["a0"], caller=accounts["a0"])


def test_duplicate_registration_is_rejected(registered, accounts):
    before = len(registered.events)
    with pytest.raises(IdTaken):
        registered.register("awesome", FEE, accounts["a2"])

    assert len(registered.events) == before
    assert registered.get("awesome").owner == accounts["a1"]
    assert registered.count() == 1


@pytest.mark.parametrize("paid", [0, FEE // 2, FEE - 1])
def test_registration_requires_fee(registry, accounts, paid):
    with pytest.raises(InsufficientPayment) as exc:
        registry.register("dapp", paid, accounts["a1"])

    assert exc.value.required == FEE
    assert exc.value.paid == paid
    assert registry.count() == 0
    assert registry.balance() == 0
    assert len(registry.events) == 0


def test_zero_id_is_reserved(registry, accounts):
    with pytest.raises(InvalidId):
        registry.register(ZERO_ID, FEE, accounts["a1"])
    with pytest.raises(InvalidId):
        registry.register("", FEE, accounts["a1"])
    with pytest.raises(InvalidId):
        registry.get(ZERO_ID)


def test_oversize_text_id_is_invalid(registry, accounts):
    with pytest.raises(InvalidId):
        registry.register("x" * 33, FEE, accounts["a1"])


def test_unknown_ids_are_not_registered(registry):
    with pytest.raises(NotRegistered):
        registry.get("never")
    with pytest.raises(NotRegistered):
        registry.meta("never", "key")


@pytest.mark.parametrize("index", [1, -1, 100])
def test_at_out_of_range(registered, index):
    with pytest.raises(IndexOutOfRange):
        registered.at(index)


def test_positions_follow_registration_order(registry, accounts):
    names = ["alpha", "beta", "gamma"]
    for i, n in enumerate(names):
        registry.register(n, FEE, accounts[f"a{i + 1}"])
    assert registry.count() == 3
    assert [registry.at(i).name for i in range(3)] == names
    assert registry.at(2).owner == accounts["a3"]


@pytest.mark.parametrize("zero", [b"\x00" * 32, "0x" + "00" * 32, b"\x00"])
def test_zero_identity_cannot_own_a_dapp(registered, accounts, zero):
    before = len(registered.events)
    with pytest.raises(ValidationError):
        registered.set_dapp_owner("awesome", zero, caller=accounts["a1"])
    with pytest.raises(ValidationError):
        registered.register("other", FEE, zero)

    assert registered.get("awesome").owner == accounts["a1"]
    assert not registered.is_registered("other")
    assert len(registered.events) == before
