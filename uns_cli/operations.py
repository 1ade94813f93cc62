"""Write operations available from the command line.

Each operation pairs a parameter object, validated when it is built, with the
two command specific steps of the write pipeline: resolving the subject of the
transaction and asking the builder for the signed payload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .accounts import delegate_public_key
from .errors import FormatError, NotFoundError, UNSError
from .model import UNIK_TYPES, PassphraseSet, PendingTransaction
from .orchestrator import CommandContext, Subject, WriteOperation
from .targets import check_property_key_format, is_symbolic_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MintParams:
    explicit_value: str
    unik_type: str = "individual"

    def __post_init__(self) -> None:
        if not self.explicit_value or not self.explicit_value.strip():
            raise FormatError("An explicit value is required to create a UNIK")
        if self.unik_type not in UNIK_TYPES:
            raise FormatError(
                f"Unknown UNIK type {self.unik_type!r}; expected one of: {', '.join(UNIK_TYPES)}"
            )


@dataclass(frozen=True)
class TransferParams:
    target: str
    recipient: str

    def __post_init__(self) -> None:
        if not self.recipient:
            raise FormatError("A recipient address or unikname is required")


@dataclass(frozen=True)
class PropertiesParams:
    target: str
    properties: Mapping[str, Optional[str]]

    def __post_init__(self) -> None:
        if not self.properties:
            raise FormatError("At least one property is required")
        for key in self.properties:
            check_property_key_format(key)


@dataclass(frozen=True)
class VoteParams:
    delegate: str
    unvote: bool = False


def unik_exists(ledger: Any, unik_id: str) -> bool:
    try:
        ledger.get_unik_by_id(unik_id)
    except NotFoundError:
        return False
    return True


def _resolve_target(context: CommandContext, params: Any) -> Subject:
    resolved = context.resolver.resolve(params.target)
    return Subject(unik_id=resolved.unik_id, owner_address=resolved.owner_address)


def _resolve_mint(context: CommandContext, params: MintParams) -> Subject:
    unik_id = context.ledger.compute_fingerprint(params.explicit_value, params.unik_type)
    if unik_exists(context.ledger, unik_id):
        raise UNSError(f"UNIK {params.explicit_value!r} already exists (unikid: {unik_id})")
    return Subject(unik_id=unik_id)


def _resolve_transfer(context: CommandContext, params: TransferParams) -> Subject:
    subject = _resolve_target(context, params)
    recipient = params.recipient
    if is_symbolic_name(recipient):
        recipient = context.resolver.resolve(recipient).owner_address
        logger.info("Recipient %s resolved to %s", params.recipient, recipient)
    if recipient == subject.owner_address:
        raise UNSError(f"UNIK {subject.unik_id} is already owned by {recipient}")
    return Subject(unik_id=subject.unik_id, owner_address=subject.owner_address, recipient=recipient)


def _resolve_delegate(context: CommandContext, params: VoteParams) -> Subject:
    resolved = context.resolver.resolve(params.delegate)
    public_key = delegate_public_key(context.ledger, resolved.owner_address)
    return Subject(unik_id=resolved.unik_id, owner_address=resolved.owner_address, public_key=public_key)


def _compose_mint(
    context: CommandContext,
    params: MintParams,
    subject: Subject,
    passphrases: PassphraseSet,
    nonce: int,
    fee: int,
) -> PendingTransaction:
    return context.builder.build_mint(
        subject.unik_id, params.unik_type, fee=fee, nonce=nonce, passphrases=passphrases
    )


def _compose_transfer(
    context: CommandContext,
    params: TransferParams,
    subject: Subject,
    passphrases: PassphraseSet,
    nonce: int,
    fee: int,
) -> PendingTransaction:
    return context.builder.build_transfer(
        subject.unik_id, subject.recipient, fee=fee, nonce=nonce, passphrases=passphrases
    )


def _compose_properties(
    context: CommandContext,
    params: PropertiesParams,
    subject: Subject,
    passphrases: PassphraseSet,
    nonce: int,
    fee: int,
) -> PendingTransaction:
    count = len(params.properties)
    logger.info("Binding new propert%s to UNIK.", "ies" if count > 1 else "y")
    return context.builder.build_property_update(
        subject.unik_id, dict(params.properties), fee=fee, nonce=nonce, passphrases=passphrases
    )


def _compose_vote(
    context: CommandContext,
    params: VoteParams,
    subject: Subject,
    passphrases: PassphraseSet,
    nonce: int,
    fee: int,
) -> PendingTransaction:
    sign = "-" if params.unvote else "+"
    return context.builder.build_vote(
        [f"{sign}{subject.public_key}"], fee=fee, nonce=nonce, passphrases=passphrases
    )


MINT = WriteOperation(name="create-unik", resolve=_resolve_mint, compose=_compose_mint)
TRANSFER = WriteOperation(name="transfer", resolve=_resolve_transfer, compose=_compose_transfer)
SET_PROPERTIES = WriteOperation(
    name="set-properties", resolve=_resolve_target, compose=_compose_properties
)
UNSET_PROPERTIES = WriteOperation(
    name="properties unset", resolve=_resolve_target, compose=_compose_properties
)
VOTE = WriteOperation(name="delegate vote", resolve=_resolve_delegate, compose=_compose_vote)


def unset_properties_params(target: str, keys: list[str]) -> PropertiesParams:
    """Build parameters that clear ``keys``; the node treats ``null`` as unset."""

    return PropertiesParams(target=target, properties={key: None for key in keys})
