"""Transaction builder for UNIK operations.

The builder produces the JSON transaction structure posted to
``/api/v2/transactions``. Signatures are deterministic ECDSA over the
canonical JSON serialisation of the unsigned structure, and the transaction id
is the SHA-256 of the fully signed structure, so identical inputs always yield
the same id.
"""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from .errors import FormatError
from .keys import keypair_from_passphrase
from .model import UNIK_TYPES, PassphraseSet, PayloadKind, PendingTransaction

logger = logging.getLogger(__name__)

TRANSACTION_VERSION = 2
CORE_TYPE_GROUP = 1
UNS_TYPE_GROUP = 2000
NFT_NAME = "unik"

TRANSACTION_TYPES: Dict[PayloadKind, tuple[int, int]] = {
    PayloadKind.MINT: (UNS_TYPE_GROUP, 0),
    PayloadKind.TRANSFER: (UNS_TYPE_GROUP, 1),
    PayloadKind.PROPERTY_UPDATE: (UNS_TYPE_GROUP, 2),
    PayloadKind.VOTE: (CORE_TYPE_GROUP, 3),
}

DEFAULT_FEE = 100_000_000


def canonical_bytes(struct: Mapping[str, Any]) -> bytes:
    return json.dumps(struct, sort_keys=True, separators=(",", ":")).encode("utf-8")


class TransactionBuilder:
    """Build and sign UNIK transactions without any network access."""

    def __init__(self, network_version: int) -> None:
        self.network_version = network_version

    def build_mint(
        self,
        unik_id: str,
        unik_type: str,
        *,
        fee: int,
        nonce: int,
        passphrases: PassphraseSet,
    ) -> PendingTransaction:
        if unik_type not in UNIK_TYPES:
            raise FormatError(f"Unknown UNIK type: {unik_type}")
        asset = self._nft_asset(unik_id, {"type": str(UNIK_TYPES[unik_type])})
        return self._sign(PayloadKind.MINT, asset, fee=fee, nonce=nonce, passphrases=passphrases)

    def build_transfer(
        self,
        unik_id: str,
        recipient: str,
        *,
        fee: int,
        nonce: int,
        passphrases: PassphraseSet,
    ) -> PendingTransaction:
        if not recipient:
            raise FormatError("A recipient address is required")
        return self._sign(
            PayloadKind.TRANSFER,
            self._nft_asset(unik_id),
            fee=fee,
            nonce=nonce,
            passphrases=passphrases,
            recipient=recipient,
        )

    def build_property_update(
        self,
        unik_id: str,
        properties: Mapping[str, Optional[str]],
        *,
        fee: int,
        nonce: int,
        passphrases: PassphraseSet,
    ) -> PendingTransaction:
        """Set properties; a ``None`` value unsets the property."""

        if not properties:
            raise FormatError("At least one property is required")
        asset = self._nft_asset(unik_id, dict(properties))
        return self._sign(
            PayloadKind.PROPERTY_UPDATE, asset, fee=fee, nonce=nonce, passphrases=passphrases
        )

    def build_vote(
        self,
        votes: List[str],
        *,
        fee: int,
        nonce: int,
        passphrases: PassphraseSet,
    ) -> PendingTransaction:
        if not votes or any(vote[:1] not in {"+", "-"} for vote in votes):
            raise FormatError("Votes must be public keys prefixed with '+' or '-'")
        return self._sign(
            PayloadKind.VOTE, {"votes": list(votes)}, fee=fee, nonce=nonce, passphrases=passphrases
        )

    @staticmethod
    def _nft_asset(unik_id: str, properties: Dict[str, Any] | None = None) -> Dict[str, Any]:
        token: Dict[str, Any] = {"tokenId": unik_id}
        if properties is not None:
            token["properties"] = properties
        return {"nft": {NFT_NAME: token}}

    def _sign(
        self,
        kind: PayloadKind,
        asset: Dict[str, Any],
        *,
        fee: int,
        nonce: int,
        passphrases: PassphraseSet,
        recipient: str | None = None,
    ) -> PendingTransaction:
        if isinstance(fee, bool) or not isinstance(fee, int) or fee < 0:
            raise FormatError(f"Fee must be a non-negative integer, got {fee!r}")
        if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce <= 0:
            raise FormatError(f"Nonce must be a positive integer, got {nonce!r}")

        type_group, type_ = TRANSACTION_TYPES[kind]
        keypair = keypair_from_passphrase(passphrases.first)
        struct: Dict[str, Any] = {
            "version": TRANSACTION_VERSION,
            "network": self.network_version,
            "typeGroup": type_group,
            "type": type_,
            "nonce": str(nonce),
            "senderPublicKey": keypair.public_key_hex,
            "fee": str(fee),
            "amount": "0",
            "asset": asset,
        }
        if recipient is not None:
            struct["recipientId"] = recipient

        struct["signature"] = keypair.sign(canonical_bytes(struct))
        if passphrases.second:
            second = keypair_from_passphrase(passphrases.second)
            struct["secondSignature"] = second.sign(canonical_bytes(struct))
        struct["id"] = hashlib.sha256(canonical_bytes(struct)).hexdigest()

        logger.info("Built %s transaction %s (nonce=%d, fee=%d)", kind.value, struct["id"], nonce, fee)
        return PendingTransaction(
            payload_kind=kind,
            fee=fee,
            nonce=nonce,
            payload=struct,
            id=struct["id"],
        )
