import pytest

from uns_cli.errors import InvariantViolationError, RejectedError
from uns_cli.model import PayloadKind, PendingTransaction
from uns_cli.tracker import ConfirmationTracker


class SequenceLedger:
    """Return confirmation counts from a fixed sequence, repeating the last one."""

    def __init__(self, confirmations=None, submit_response=None) -> None:
        self.confirmations = list(confirmations or [])
        self.submit_response = submit_response or {"data": {"accept": ["tx"], "invalid": []}}
        self.queries: list[tuple[str, float]] = []
        self.submitted: list[dict] = []

    def get_transaction(self, transaction_id, timeout_ms):
        self.queries.append((transaction_id, timeout_ms))
        index = min(len(self.queries), len(self.confirmations)) - 1
        value = self.confirmations[index]
        if value is None:
            return None
        return {"id": transaction_id, "confirmations": value}

    def submit_transaction(self, payload):
        self.submitted.append(payload)
        return self.submit_response


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _transaction(tx_id="tx") -> PendingTransaction:
    return PendingTransaction(
        payload_kind=PayloadKind.MINT, fee=1, nonce=1, payload={"id": tx_id}, id=tx_id
    )


@pytest.mark.parametrize("max_retries", [0, 1, 4])
def test_unchanging_confirmations_use_every_attempt(max_retries: int) -> None:
    ledger = SequenceLedger([1])
    tracker = ConfirmationTracker(ledger, sleep=RecordingSleep())

    state = tracker.await_confirmations(8, "tx", max_retries=max_retries, target_confirmations=3)

    assert len(ledger.queries) == max_retries + 1
    assert state.confirmations == 1
    assert state.attempts == max_retries + 1
    assert state.found is True


def test_stops_as_soon_as_target_is_reached() -> None:
    ledger = SequenceLedger([0, 1, 3, 5])
    tracker = ConfirmationTracker(ledger, sleep=RecordingSleep())

    state = tracker.await_confirmations(8, "tx", max_retries=3, target_confirmations=3)

    assert state.confirmations == 3
    assert len(ledger.queries) == 3


def test_missing_transaction_counts_as_zero_confirmations() -> None:
    ledger = SequenceLedger([None])
    tracker = ConfirmationTracker(ledger, sleep=RecordingSleep())

    state = tracker.await_confirmations(8, "tx", max_retries=2, target_confirmations=1)

    assert state.found is False
    assert state.confirmations == 0
    assert len(ledger.queries) == 3


def test_each_attempt_waits_one_block_and_uses_it_as_timeout() -> None:
    ledger = SequenceLedger([0])
    sleep = RecordingSleep()
    tracker = ConfirmationTracker(ledger, sleep=sleep)

    tracker.await_confirmations(2.5, "tx", max_retries=1, target_confirmations=1)

    assert sleep.calls == [2.5, 2.5]
    assert [timeout for _, timeout in ledger.queries] == [2500, 2500]


def test_negative_budget_is_rejected() -> None:
    tracker = ConfirmationTracker(SequenceLedger([0]), sleep=RecordingSleep())
    with pytest.raises(ValueError):
        tracker.await_confirmations(8, "tx", max_retries=-1)


def test_submit_returns_transaction_id() -> None:
    ledger = SequenceLedger()
    assert ConfirmationTracker(ledger).submit(_transaction("abc")) == "abc"
    assert ledger.submitted == [{"id": "abc"}]


def test_submit_rejection_carries_raw_errors() -> None:
    errors = {"abc": [{"type": "ERR_LOW_FEE", "message": "fee too low"}]}
    ledger = SequenceLedger(submit_response={"data": {"accept": [], "invalid": ["abc"]}, "errors": errors})

    with pytest.raises(RejectedError) as excinfo:
        ConfirmationTracker(ledger).submit(_transaction("abc"))

    assert excinfo.value.errors == errors
    assert len(ledger.submitted) == 1


def test_submit_without_id_is_an_invariant_violation() -> None:
    ledger = SequenceLedger()
    transaction = PendingTransaction(payload_kind=PayloadKind.VOTE, fee=1, nonce=1)

    with pytest.raises(InvariantViolationError):
        ConfirmationTracker(ledger).submit(transaction)

    assert ledger.submitted == []
