"""Collect and validate the passphrases that sign UNIK transactions."""

from __future__ import annotations

import getpass
import logging
from typing import Any, Callable, Optional

from .errors import FormatError, NotFoundError
from .keys import address_from_passphrase
from .model import PassphraseSet

logger = logging.getLogger(__name__)

PASSPHRASE_WORD_COUNT = 12
PASSPHRASE_PROMPT = "Enter your wallet passphrase (12 words phrase): "
SECOND_PASSPHRASE_PROMPT = "Enter your wallet second passphrase (12 words phrase): "

Prompt = Callable[[str], str]


def is_passphrase(value: str | None) -> bool:
    return bool(value) and len(value.split(" ")) == PASSPHRASE_WORD_COUNT


def check_passphrase_format(passphrase: str | None) -> None:
    if not is_passphrase(passphrase):
        raise FormatError("Wrong pass phrase format")


def prompt_masked(message: str) -> str:
    """Read a secret from the terminal without echoing it."""

    return getpass.getpass(message)


def wallet_matches(ledger: Any, address: str, predicate: Callable[[dict], bool]) -> bool:
    """Apply ``predicate`` to the wallet at ``address``; unknown wallets are ``False``."""

    try:
        wallet = ledger.get_wallet(address)
    except NotFoundError:
        logger.info("Wallet %s not found.", address)
        return False
    return bool(predicate(wallet))


class PassphraseCollector:
    """Obtain the first and, when the account needs it, second passphrase."""

    def __init__(self, ledger: Any, pub_key_hash: int, prompt: Optional[Prompt] = None) -> None:
        self.ledger = ledger
        self.pub_key_hash = pub_key_hash
        self.prompt = prompt or prompt_masked

    def has_second_passphrase(self, passphrase: str) -> bool:
        address = address_from_passphrase(passphrase, self.pub_key_hash)
        return wallet_matches(self.ledger, address, lambda wallet: bool(wallet.get("secondPublicKey")))

    def collect(
        self,
        provided_first: str | None = None,
        provided_second: str | None = None,
        check_second: bool = True,
    ) -> PassphraseSet:
        first = provided_first or self.prompt(PASSPHRASE_PROMPT)
        check_passphrase_format(first)

        second = provided_second or None
        if check_second and not second and self.has_second_passphrase(first):
            logger.debug("Account requires a second passphrase")
            second = self.prompt(SECOND_PASSPHRASE_PROMPT)
        if second:
            check_passphrase_format(second)

        return PassphraseSet(first=first, second=second)
