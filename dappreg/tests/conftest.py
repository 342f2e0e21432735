# -*- coding: utf-8 -*-
"""
dappreg.tests.conftest
======================

Shared fixtures:
- deterministic 32-byte account identities (sha3 of a tag)
- a fresh registry per test with a known fee and administrator
- a RegistryService host with funded ledger accounts
"""
from __future__ import annotations

import hashlib
from typing import Dict

import pytest

from dappreg.config import ONE_COIN, load_config
from dappreg.registry import DappRegistry
from dappreg.service import RegistryService
from dappreg.treasury import Ledger

FEE = ONE_COIN


def det_address(tag: str) -> bytes:
    """Stable 32-byte identity derived from a tag."""
    return hashlib.sha3_256(("acct:" + tag).encode("utf-8")).digest()


@pytest.fixture(scope="session")
def accounts() -> Dict[str, bytes]:
    """
    accounts["a0"] is the registry administrator; a1..a3 are ordinary users,
    as in the end-to-end walkthrough tests.
    """
    return {f"a{i}": det_address(f"a{i}") for i in range(4)}


@pytest.fixture()
def config():
    return load_config().with_overrides(default_fee=FEE)


@pytest.fixture()
def registry(accounts, config) -> DappRegistry:
    return DappRegistry(accounts["a0"], config=config)


@pytest.fixture()
def registered(registry, accounts) -> DappRegistry:
    """Registry with "awesome" already registered to a1."""
    registry.register("awesome", FEE, accounts["a1"])
    return registry


@pytest.fixture()
def service(registry, accounts) -> RegistryService:
    ledger = Ledger({addr: 5 * FEE for name, addr in accounts.items() if name != "a0"})
    return RegistryService(registry, ledger)
