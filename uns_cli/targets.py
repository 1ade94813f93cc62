"""Resolve user-facing UNIK targets into canonical token identifiers.

A target is either a raw 64 character token id or a symbolic ``@`` name. The
two forms take disjoint paths through the ledger: ids are fetched directly,
names go through the name resolution lookup.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterable, Mapping, Union

from .errors import ConsistencyError, FormatError, NotFoundError
from .model import (
    UNIK_TYPES,
    ChainSnapshot,
    ResolvedTarget,
    SymbolicNameTarget,
    TokenIdTarget,
)

logger = logging.getLogger(__name__)

UNIK_ID_LENGTH = 64
PROPERTY_KEY_VALUE_SEPARATOR = ":"

_PROPERTY_KEY_RE = re.compile(r"[a-zA-Z0-9]+")

Target = Union[TokenIdTarget, SymbolicNameTarget]


def check_unikid_format(unikid: str | None) -> None:
    if not unikid or len(unikid) != UNIK_ID_LENGTH:
        raise FormatError("Unikid parameter does not match expected format")


def check_property_key_format(property_key: str | None) -> None:
    if not property_key or not _PROPERTY_KEY_RE.fullmatch(property_key):
        raise FormatError(f"Property {property_key} does not match expected format")


def is_symbolic_name(value: str | None) -> bool:
    return bool(value) and value.startswith("@") and len(value) > 1


def parse_symbolic_name(value: str) -> SymbolicNameTarget:
    """Split ``@[type:]explicit-value`` into its type and explicit value."""

    if not is_symbolic_name(value):
        raise FormatError(f"Unikname {value!r} must start with '@'")
    body = value[1:]
    unik_type = "individual"
    head, separator, tail = body.partition(":")
    if separator and head in UNIK_TYPES:
        unik_type, body = head, tail
    if not body:
        raise FormatError(f"Unikname {value!r} has no explicit value")
    return SymbolicNameTarget(value=value, unik_type=unik_type, explicit_value=body)


def classify_target(value: str) -> Target:
    """Names start with ``@``; anything else must have the length of a unikid."""

    if is_symbolic_name(value):
        return parse_symbolic_name(value)
    try:
        check_unikid_format(value)
    except FormatError as exc:
        raise FormatError("Unik target argument does not match expected format.") from exc
    return TokenIdTarget(value=value.lower())


def parse_properties(raw_properties: Iterable[str]) -> Dict[str, str]:
    """Parse ``key:value`` pairs; the value is everything after the first ``:``."""

    properties: Dict[str, str] = {}
    for prop in raw_properties:
        key, separator, value = prop.partition(PROPERTY_KEY_VALUE_SEPARATOR)
        if not separator:
            raise FormatError(f"Property {prop}, doesn't contain {PROPERTY_KEY_VALUE_SEPARATOR}")
        check_property_key_format(key)
        properties[key] = value
    if not properties:
        raise FormatError("At least one property is required")
    return properties


def snapshot_from_chainmeta(chainmeta: Mapping[str, Any] | None, network_name: str) -> ChainSnapshot:
    height = (chainmeta or {}).get("height") or 0
    return ChainSnapshot(height=int(height), network_name=network_name)


def check_data_consistency(*heights: int) -> None:
    """Ensure independently fetched chain heights agree."""

    if heights and any(height != heights[0] for height in heights):
        logger.debug("Inconsistent chain heights: %s", heights)
        raise ConsistencyError("Unable to read right now. Please retry.")


class TargetResolver:
    """Turn a target string into a :class:`ResolvedTarget`."""

    def __init__(self, ledger: Any, network_name: str) -> None:
        self.ledger = ledger
        self.network_name = network_name

    def resolve(self, target: str) -> ResolvedTarget:
        classified = classify_target(target)
        if isinstance(classified, TokenIdTarget):
            return self._resolve_token_id(classified)
        return self._resolve_symbolic_name(classified)

    def _resolve_token_id(self, target: TokenIdTarget) -> ResolvedTarget:
        logger.debug("Fetching UNIK %s", target.value)
        unik = self.ledger.get_unik_by_id(target.value)
        owner = unik.get("ownerId")
        if not owner:
            raise NotFoundError(f"UNIK {target.value} has no owner on chain")
        return ResolvedTarget(
            unik_id=target.value,
            owner_address=owner,
            chain_meta=snapshot_from_chainmeta(unik.get("chainmeta"), self.network_name),
            transactions=unik.get("transactions"),
        )

    def _resolve_symbolic_name(self, target: SymbolicNameTarget) -> ResolvedTarget:
        logger.debug("Resolving unikname %s (%s)", target.explicit_value, target.unik_type)
        resolved = self.ledger.resolve_symbolic_name(target.explicit_value, target.unik_type)
        error = resolved.get("error")
        if isinstance(error, BaseException):
            raise error
        if error:
            raise NotFoundError(f"Unable to resolve {target.value}: {error}")
        data = resolved.get("data")
        if not data or not data.get("unikid"):
            raise NotFoundError(f"Unikname {target.value} could not be resolved")
        owner = data.get("ownerAddress")
        if not owner:
            raise NotFoundError(f"Unikname {target.value} has no owner on chain")
        return ResolvedTarget(
            unik_id=data["unikid"],
            owner_address=owner,
            chain_meta=snapshot_from_chainmeta(resolved.get("chainmeta"), self.network_name),
        )
