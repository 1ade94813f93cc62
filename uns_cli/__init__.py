"""UNS network command line tooling for UNIK transactions."""

from .config import ConfigurationError, NetworkConfig, load_network_config
from .errors import (
    ConsistencyError,
    FlagConsistencyError,
    FormatError,
    InvariantViolationError,
    LedgerTransportError,
    NotFoundError,
    RejectedError,
    UNSError,
)
from .keys import address_from_passphrase, base58_check_decode, verify_signature
from .ledger import LedgerClient
from .model import ChainSnapshot, ConfirmationState, PassphraseSet, PendingTransaction, ResolvedTarget
from .orchestrator import WaitParams, WriteOperation, WriteRequest, open_context, run_write_operation
from .targets import TargetResolver, classify_target
from .tracker import ConfirmationTracker
from .tx_builder import TransactionBuilder

__all__ = [
    "ChainSnapshot",
    "ConfigurationError",
    "ConfirmationState",
    "ConfirmationTracker",
    "ConsistencyError",
    "FlagConsistencyError",
    "FormatError",
    "InvariantViolationError",
    "LedgerClient",
    "LedgerTransportError",
    "NetworkConfig",
    "NotFoundError",
    "PassphraseSet",
    "PendingTransaction",
    "RejectedError",
    "ResolvedTarget",
    "TargetResolver",
    "TransactionBuilder",
    "UNSError",
    "WaitParams",
    "WriteOperation",
    "WriteRequest",
    "address_from_passphrase",
    "base58_check_decode",
    "classify_target",
    "load_network_config",
    "open_context",
    "run_write_operation",
    "verify_signature",
]
