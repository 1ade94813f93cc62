"""Account level lookups: nonces and delegate wallets."""

from __future__ import annotations

import logging
from typing import Any

from .errors import NotFoundError, UNSError
from .keys import address_from_passphrase

logger = logging.getLogger(__name__)


def next_nonce(ledger: Any, passphrase: str, pub_key_hash: int) -> int:
    """Return the nonce the next transaction signed by ``passphrase`` must carry.

    The read-then-increment is not atomic: two commands signing for the same
    account at once can both compute the same nonce, and the node will reject
    the second one. One writer per account at a time is assumed.
    """

    address = address_from_passphrase(passphrase, pub_key_hash)
    current = int(ledger.get_account_nonce(address))
    logger.debug("Wallet %s nonce is %d", address, current)
    return current + 1


def delegate_public_key(ledger: Any, owner_address: str) -> str:
    """Return the public key of the delegate wallet at ``owner_address``."""

    try:
        wallet = ledger.get_wallet(owner_address)
    except NotFoundError as exc:
        raise NotFoundError("Delegate not found") from exc
    if not wallet.get("isDelegate"):
        raise UNSError("This Unikname is not registered as delegate.")
    public_key = wallet.get("publicKey")
    if not public_key:
        raise NotFoundError(f"Delegate wallet {owner_address} has no public key")
    return public_key
