import pytest

from uns_cli.accounts import delegate_public_key, next_nonce
from uns_cli.errors import NotFoundError, UNSError
from uns_cli.keys import address_from_passphrase

PASSPHRASE = "alpha bravo charlie delta echo foxtrot golf hotel india juliet kilo lima"


class StubNonceLedger:
    def __init__(self, nonce: int) -> None:
        self.nonce = nonce
        self.addresses: list[str] = []

    def get_account_nonce(self, address):
        self.addresses.append(address)
        return self.nonce


class StubWalletLedger:
    def __init__(self, wallet=None) -> None:
        self.wallet = wallet

    def get_wallet(self, address):
        if self.wallet is None:
            raise NotFoundError("Wallet not found")
        return self.wallet


@pytest.mark.parametrize("current", [0, 1, 7, 10_000])
def test_next_nonce_is_current_plus_one(current: int) -> None:
    ledger = StubNonceLedger(current)

    assert next_nonce(ledger, PASSPHRASE, 30) == current + 1
    assert ledger.addresses == [address_from_passphrase(PASSPHRASE, 30)]


def test_delegate_public_key_returns_wallet_key() -> None:
    ledger = StubWalletLedger({"isDelegate": True, "publicKey": "02" + "cd" * 32})
    assert delegate_public_key(ledger, "UDelegate") == "02" + "cd" * 32


def test_delegate_must_be_registered() -> None:
    with pytest.raises(UNSError) as excinfo:
        delegate_public_key(StubWalletLedger({"isDelegate": False}), "UOwner")
    assert "not registered as delegate" in str(excinfo.value)


def test_unknown_delegate_wallet_is_not_found() -> None:
    with pytest.raises(NotFoundError) as excinfo:
        delegate_public_key(StubWalletLedger(), "UOwner")
    assert str(excinfo.value) == "Delegate not found"
