"""Sequence the steps of a UNIK write command.

A write command always runs the same pipeline: check the wait flags, resolve
what the transaction is about, collect passphrases, read the nonce, build and
sign the transaction, submit it once, and optionally wait for confirmations.
Only the "resolve" and "build" steps differ between commands; they are
supplied by a :class:`WriteOperation`.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .accounts import next_nonce
from .config import NetworkConfig
from .errors import FlagConsistencyError, InvariantViolationError
from .ledger import LedgerClient
from .model import ChainSnapshot, ConfirmationState, PassphraseSet, PendingTransaction
from .passphrases import PassphraseCollector, Prompt
from .targets import TargetResolver, check_data_consistency
from .tracker import ConfirmationTracker
from .tx_builder import DEFAULT_FEE, TransactionBuilder

logger = logging.getLogger(__name__)

DEFAULT_AWAIT = 3
DEFAULT_CONFIRMATIONS = 1


@dataclass(frozen=True)
class WaitParams:
    await_blocks: int = DEFAULT_AWAIT
    confirmations: int = DEFAULT_CONFIRMATIONS


@dataclass(frozen=True)
class Credentials:
    passphrase: Optional[str] = None
    second_passphrase: Optional[str] = None

    def __repr__(self) -> str:
        return "Credentials(***)"


@dataclass(frozen=True)
class WriteRequest:
    params: Any
    credentials: Credentials = Credentials()
    wait: WaitParams = WaitParams()
    fee: int = DEFAULT_FEE


@dataclass(frozen=True)
class Subject:
    """What a write transaction applies to, once resolved against the chain."""

    unik_id: Optional[str] = None
    owner_address: Optional[str] = None
    recipient: Optional[str] = None
    public_key: Optional[str] = None


@dataclass
class CommandContext:
    config: NetworkConfig
    ledger: Any
    snapshot: ChainSnapshot
    block_time: float
    pub_key_hash: int
    resolver: TargetResolver
    passphrases: PassphraseCollector
    builder: TransactionBuilder
    tracker: ConfirmationTracker


ResolveStep = Callable[[CommandContext, Any], Subject]
ComposeStep = Callable[[CommandContext, Any, Subject, PassphraseSet, int, int], PendingTransaction]


@dataclass(frozen=True)
class WriteOperation:
    name: str
    resolve: ResolveStep
    compose: ComposeStep
    check_second_passphrase: bool = True


def validate_wait_flags(wait: WaitParams) -> None:
    """Reject contradictory wait flags; ``--await 0`` returns without polling."""

    if wait.await_blocks < 0 or wait.confirmations < 0:
        raise FlagConsistencyError("--await and --confirmations must not be negative")
    if wait.await_blocks > 0 and wait.await_blocks <= wait.confirmations:
        raise FlagConsistencyError(
            f"Flags consistency error. --await ({wait.await_blocks}) should be strictly higher "
            f"than --confirmations ({wait.confirmations})"
        )


def ensure_transaction_id(transaction: PendingTransaction) -> str:
    if not transaction.id or transaction.payload.get("id") != transaction.id:
        raise InvariantViolationError("Transaction id can't be undefined")
    return transaction.id


def read_chain_snapshot(ledger: Any, network_name: str) -> ChainSnapshot:
    """Read the chain height twice from independent endpoints; they must agree."""

    blockchain_height = ledger.get_current_height()
    status_height = ledger.get_node_status_height()
    check_data_consistency(blockchain_height, status_height)
    return ChainSnapshot(height=blockchain_height, network_name=network_name)


def open_context(
    config: NetworkConfig,
    *,
    ledger: Any = None,
    prompt: Optional[Prompt] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CommandContext:
    """Connect to the configured node and build the per-command context."""

    ledger = ledger if ledger is not None else LedgerClient(config)
    logger.info("node: %s", config.node)
    if config.dev_mode:
        logger.warning("DEV MODE IS ACTIVATED")

    node_configuration = ledger.get_node_configuration()
    snapshot = read_chain_snapshot(ledger, config.name)
    constants = node_configuration.get("constants") or {}
    block_time = float(constants.get("blocktime") or config.block_time)
    pub_key_hash = int(node_configuration.get("version") or config.pub_key_hash)
    logger.debug(
        "Connected to %s at height %d (block time %ss, version %d)",
        config.name,
        snapshot.height,
        block_time,
        pub_key_hash,
    )

    return CommandContext(
        config=config,
        ledger=ledger,
        snapshot=snapshot,
        block_time=block_time,
        pub_key_hash=pub_key_hash,
        resolver=TargetResolver(ledger, config.name),
        passphrases=PassphraseCollector(ledger, pub_key_hash, prompt=prompt),
        builder=TransactionBuilder(pub_key_hash),
        tracker=ConfirmationTracker(ledger, sleep=sleep),
    )


def shape_result(
    subject: Subject, transaction_id: str, state: ConfirmationState | None
) -> Dict[str, Any]:
    return {
        "id": subject.unik_id,
        "transaction": transaction_id,
        "confirmations": state.confirmations if state else 0,
    }


def run_write_operation(
    context: CommandContext, operation: WriteOperation, request: WriteRequest
) -> Dict[str, Any]:
    """Run one write command end to end and return ``{id, transaction, confirmations}``."""

    validate_wait_flags(request.wait)

    subject = operation.resolve(context, request.params)
    passphrases = context.passphrases.collect(
        request.credentials.passphrase,
        request.credentials.second_passphrase,
        check_second=operation.check_second_passphrase,
    )
    nonce = next_nonce(context.ledger, passphrases.first, context.pub_key_hash)
    transaction = operation.compose(
        context, request.params, subject, passphrases, nonce, request.fee
    )
    ensure_transaction_id(transaction)

    transaction_id = context.tracker.submit(transaction)

    state: ConfirmationState | None = None
    if request.wait.await_blocks > 0:
        state = context.tracker.await_confirmations(
            context.block_time,
            transaction_id,
            request.wait.await_blocks,
            request.wait.confirmations,
            transaction=transaction,
        )
        if not state.found:
            logger.warning(
                "Transaction not found yet, the network can be slow. Check this url in a while: %s",
                context.config.transaction_url(transaction_id),
            )
        elif not state.reached(request.wait.confirmations):
            logger.warning(
                "Transaction %s has %d/%d confirmations after %d attempts",
                transaction_id,
                state.confirmations,
                request.wait.confirmations,
                state.attempts,
            )

    logger.info("%s: transaction %s submitted", operation.name, transaction_id)
    return shape_result(subject, transaction_id, state)
