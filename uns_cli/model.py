"""Domain models for UNIK transactions.

These structures live only for the duration of one command: a resolved target,
the passphrases that sign for it, the transaction built from them and the
confirmation state observed after submission. Nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence

# DID type codes stored in the ``type`` property of a UNIK.
UNIK_TYPES: Dict[str, int] = {
    "individual": 1,
    "organization": 2,
    "network": 3,
}


class PayloadKind(str, Enum):
    MINT = "mint"
    TRANSFER = "transfer"
    PROPERTY_UPDATE = "property-update"
    VOTE = "vote"


@dataclass(frozen=True)
class TokenIdTarget:
    value: str


@dataclass(frozen=True)
class SymbolicNameTarget:
    """A ``@[type:]explicit-value`` alias resolved through the name service."""

    value: str
    unik_type: str = "individual"
    explicit_value: str = ""


@dataclass(frozen=True)
class ChainSnapshot:
    height: int
    network_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"height": self.height, "network": self.network_name}


@dataclass(frozen=True)
class ResolvedTarget:
    unik_id: str
    owner_address: str
    chain_meta: ChainSnapshot
    transactions: Optional[Sequence[Any]] = None


@dataclass(frozen=True)
class PassphraseSet:
    first: str
    second: Optional[str] = None

    def __repr__(self) -> str:  # keep secrets out of logs and tracebacks
        return f"PassphraseSet(first=***, second={'***' if self.second else None})"


@dataclass(frozen=True)
class PendingTransaction:
    """A signed transaction ready for submission.

    ``payload`` is the JSON structure accepted by the node; ``id`` mirrors
    ``payload["id"]`` and must be present once the builder has signed it.
    """

    payload_kind: PayloadKind
    fee: int
    nonce: int
    payload: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None


@dataclass(frozen=True)
class ConfirmationState:
    """Last observation made while waiting for a transaction to confirm."""

    transaction_id: str
    confirmations: int = 0
    found: bool = False
    attempts: int = 0
    transaction: Optional[PendingTransaction] = None
    record: Optional[Dict[str, Any]] = None

    def reached(self, target_confirmations: int) -> bool:
        return self.confirmations >= target_confirmations
