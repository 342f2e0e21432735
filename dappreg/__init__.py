from __future__ import annotations
"""
dappreg — fee-gated registry of dapp ids.

Maps unique 32-byte dapp ids to an owning identity and a per-id metadata
namespace. Registration costs a configurable fee; ownership and metadata
changes require the dapp owner; fee changes, administrator transfer and fee
withdrawal require the registry administrator.

Public surface:
- DappRegistry (dappreg.registry)
- Entry, as_identifier, as_identity, as_word (dappreg.types)
- error types (dappreg.errors)
- RegistryService, CallEnv, Ledger (in-process host pieces)
"""

from typing import List

from .version import __version__
from .context import CallEnv
from .errors import (
    DappRegError,
    IdTaken,
    IndexOutOfRange,
    InsufficientPayment,
    InvalidId,
    NotRegistered,
    Unauthorized,
    ValidationError,
)
from .events import Event, EventLog
from .registry import DappRegistry
from .service import RegistryService
from .treasury import Ledger
from .types import ZERO_ID, Entry, as_identifier, as_identity, as_word

__all__: List[str] = [
    "__version__",
    "DappRegistry",
    "RegistryService",
    "CallEnv",
    "Ledger",
    "Entry",
    "Event",
    "EventLog",
    "ZERO_ID",
    "as_identifier",
    "as_identity",
    "as_word",
    "DappRegError",
    "Unauthorized",
    "NotRegistered",
    "IdTaken",
    "InvalidId",
    "InsufficientPayment",
    "IndexOutOfRange",
    "ValidationError",
]
