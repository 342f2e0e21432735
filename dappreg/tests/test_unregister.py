"""
Removal semantics: who may unregister, what a removed id still answers, and
how the never-compacted index list behaves afterwards.
"""
from __future__ import annotations

import pytest

from dappreg.errors import NotRegistered, Unauthorized
from dappreg.events import UNREGISTERED
from dappreg.types import ZERO_WORD, Entry, as_identifier, as_word

from .conftest import FEE

AWESOME = as_identifier("awesome")


def test_owner_unregisters(registered, accounts):
    registered.set_meta("awesome", "key", "value", caller=accounts["a1"])
    registered.unregister("awesome", caller=accounts["a1"])

    events = registered.events.filter(UNREGISTERED)
    assert len(events) == 1
    assert events[0].args == {"id": AWESOME}

    assert not registered.is_registered("awesome")
    with pytest.raises(NotRegistered):
        registered.get("awesome")
    with pytest.raises(NotRegistered):
        registered.meta("awesome", "key")


def test_administrator_unregisters(registered, accounts):
    registered.unregister("awesome", caller=accounts["a0"])
    assert not registered.is_registered("awesome")


def test_third_party_cannot_unregister(registered, accounts):
    with pytest.raises(Unauthorized):
        registered.unregister("awesome", caller=accounts["a2"])
    assert registered.get("awesome").owner == accounts["a1"]
    assert registered.events.filter(UNREGISTERED) == []


def test_unregister_twice(registered, accounts):
    registered.unregister("awesome", caller=accounts["a1"])
    with pytest.raises(NotRegistered):
        registered.unregister("awesome", caller=accounts["a1"])
    assert len(registered.events.filter(UNREGISTERED)) == 1


def test_unknown_id_cannot_be_unregistered(registry, accounts):
    with pytest.raises(NotRegistered):
        registry.unregister("ghost", caller=accounts["a0"])


def test_mutations_after_removal_fail(registered, accounts):
    a1 = accounts["a1"]
    registered.unregister("awesome", caller=a1)

    with pytest.raises(NotRegistered):
        registered.set_meta("awesome", "k", "v", caller=a1)
    with pytest.raises(NotRegistered):
        registered.set_dapp_owner("awesome", accounts["a2"], caller=a1)


def test_index_list_is_not_compacted(registry, accounts):
    registry.register("first", FEE, accounts["a1"])
    registry.register("second", FEE, accounts["a2"])
    registry.unregister("first", caller=accounts["a1"])

    assert registry.count() == 2
    with pytest.raises(NotRegistered):
        registry.at(0)
    assert registry.at(1).name == "second"


def test_fee_is_kept_after_removal(registered, accounts):
    registered.unregister("awesome", caller=accounts["a1"])
    assert registered.balance() == FEE


def test_reregistration_starts_clean(registered, accounts):
    a1, a2 = accounts["a1"], accounts["a2"]
    registered.set_meta("awesome", "key", "value", caller=a1)
    registered.unregister("awesome", caller=a1)

    entry = registered.register("awesome", FEE, a2)
    assert entry == Entry(AWESOME, a2)
    assert registered.meta("awesome", "key") == ZERO_WORD
    assert registered.count() == 2

    # both positions resolve to the current entry
    assert registered.at(0) == entry
    assert registered.at(1) == entry

    with pytest.raises(Unauthorized):
        registered.set_meta("awesome", "key", "again", caller=a1)
    registered.set_meta("awesome", "key", "again", caller=a2)
    assert registered.meta("awesome", "key") == as_word("again")
