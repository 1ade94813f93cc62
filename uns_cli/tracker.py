"""Submit transactions and wait for them to reach a confirmation depth."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from .errors import InvariantViolationError, RejectedError
from .model import ConfirmationState, PendingTransaction

logger = logging.getLogger(__name__)


class ConfirmationTracker:
    """Single-shot submission plus bounded confirmation polling.

    Each polling attempt first waits one block time and then queries the node
    with a request timeout of the same length, so ``max_retries`` roughly
    bounds the wait to ``(max_retries + 1) * block_time_seconds``.
    """

    def __init__(self, ledger: Any, sleep: Callable[[float], None] = time.sleep) -> None:
        self.ledger = ledger
        self.sleep = sleep

    def submit(self, transaction: PendingTransaction) -> str:
        """Broadcast ``transaction`` once and return its id."""

        if not transaction.id:
            raise InvariantViolationError("Transaction id can't be undefined")

        response = self.ledger.submit_transaction(transaction.payload)
        errors = response.get("errors")
        data = response.get("data") or {}
        if errors or transaction.id in (data.get("invalid") or []):
            logger.debug("Node rejected %s: %s", transaction.id, errors)
            raise RejectedError(f"Transaction not accepted. Caused by: {errors}", errors=errors)

        logger.info("Broadcasted transaction %s", transaction.id)
        return transaction.id

    def await_confirmations(
        self,
        block_time_seconds: float,
        transaction_id: str,
        max_retries: int = 0,
        target_confirmations: int = 0,
        transaction: Optional[PendingTransaction] = None,
    ) -> ConfirmationState:
        """Poll until ``target_confirmations`` is reached or retries run out.

        Running out of retries is not an error: the last observation is
        returned, possibly with ``found=False`` and zero confirmations.
        """

        if max_retries < 0 or target_confirmations < 0:
            raise ValueError("max_retries and target_confirmations must be >= 0")

        retries_remaining = max_retries
        attempts = 0
        while True:
            self.sleep(block_time_seconds)
            record = self.ledger.get_transaction(transaction_id, block_time_seconds * 1000)
            attempts += 1
            confirmations = int((record or {}).get("confirmations") or 0)
            state = ConfirmationState(
                transaction_id=transaction_id,
                confirmations=confirmations,
                found=record is not None,
                attempts=attempts,
                transaction=transaction,
                record=record,
            )
            logger.debug(
                "Transaction %s: %d/%d confirmations (attempt %d, %d retries left)",
                transaction_id,
                confirmations,
                target_confirmations,
                attempts,
                retries_remaining,
            )
            if state.reached(target_confirmations) or retries_remaining <= 0:
                return state
            retries_remaining -= 1
