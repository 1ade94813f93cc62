"""Command line interface for UNIK transactions.

Write commands (``create-unik``, ``transfer``, ``set-properties``,
``properties unset``, ``delegate vote``/``unvote``) all go through
:func:`uns_cli.orchestrator.run_write_operation`; the read commands
(``resolve``, ``get-wallet-address``, ``status``) query the node directly.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import Any, Sequence

import yaml

from .config import ConfigurationError, NetworkConfig, get_networks_list, load_network_config
from .errors import InvariantViolationError, UNSError
from .keys import address_from_passphrase, public_key_from_passphrase
from .ledger import LedgerClient
from .operations import (
    MINT,
    SET_PROPERTIES,
    TRANSFER,
    UNSET_PROPERTIES,
    VOTE,
    MintParams,
    PropertiesParams,
    TransferParams,
    VoteParams,
    unset_properties_params,
)
from .orchestrator import (
    DEFAULT_AWAIT,
    DEFAULT_CONFIRMATIONS,
    CommandContext,
    Credentials,
    WaitParams,
    WriteOperation,
    WriteRequest,
    open_context,
    run_write_operation,
    validate_wait_flags,
)
from .passphrases import PASSPHRASE_PROMPT, check_passphrase_format, is_passphrase, prompt_masked
from .targets import parse_properties
from .tx_builder import DEFAULT_FEE

logger = logging.getLogger(__name__)

COMPACT_JSON_SEPARATORS = (",", ":")
OUTPUT_FORMATS = ("json", "yaml", "raw")


class CLIError(RuntimeError):
    """Raised when CLI arguments are invalid."""


def _non_negative_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return value


def _add_write_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--passphrase",
        default=None,
        help="Wallet passphrase (12 words). Prompted for when omitted.",
    )
    parser.add_argument(
        "--second-passphrase",
        default=None,
        help="Second passphrase, required when the wallet has one registered",
    )
    parser.add_argument(
        "--fee",
        type=_non_negative_int,
        default=DEFAULT_FEE,
        help=f"Transaction fee in satoUNS (default: {DEFAULT_FEE})",
    )
    parser.add_argument(
        "--await",
        dest="await_blocks",
        type=_non_negative_int,
        default=DEFAULT_AWAIT,
        help="Number of blocks to wait for confirmations; 0 returns right after submission",
    )
    parser.add_argument(
        "--confirmations",
        type=_non_negative_int,
        default=DEFAULT_CONFIRMATIONS,
        help="Number of confirmations to wait for (must be lower than --await)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="uns", description="UNS network command line tool")
    parser.add_argument(
        "-n",
        "--network",
        default=None,
        choices=get_networks_list(),
        help="Network to connect to (default: livenet, or UNS_NETWORK)",
    )
    parser.add_argument("--node", default=None, help="Override the node URL")
    parser.add_argument("--services", default=None, help="Override the services provider URL")
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--format",
        dest="output_format",
        default="json",
        choices=OUTPUT_FORMATS,
        help="Output format (raw is only supported by get-wallet-address)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser("create-unik", help="Mint a new UNIK")
    create_parser.add_argument("--explicit-value", required=True, help="Explicit value of the UNIK")
    create_parser.add_argument(
        "--type",
        dest="unik_type",
        default="individual",
        help="UNIK type: individual, organization or network",
    )
    _add_write_flags(create_parser)

    transfer_parser = subparsers.add_parser("transfer", help="Transfer a UNIK to another wallet")
    transfer_parser.add_argument("target", help="UNIK id or @unikname to transfer")
    transfer_parser.add_argument(
        "--recipient", required=True, help="Recipient address or @unikname"
    )
    _add_write_flags(transfer_parser)

    set_parser = subparsers.add_parser("set-properties", help="Set properties of a UNIK")
    set_parser.add_argument("--unikid", required=True, help="UNIK id or @unikname")
    set_parser.add_argument(
        "-p",
        "--properties",
        nargs="+",
        required=True,
        help="Properties as key:value pairs",
    )
    _add_write_flags(set_parser)

    properties_parser = subparsers.add_parser("properties", help="Manage UNIK properties")
    properties_sub = properties_parser.add_subparsers(dest="properties_command", required=True)
    unset_parser = properties_sub.add_parser("unset", help="Remove properties from a UNIK")
    unset_parser.add_argument("--unikid", required=True, help="UNIK id or @unikname")
    unset_parser.add_argument(
        "-k", "--propertyKey", dest="keys", nargs="+", required=True, help="Keys to remove"
    )
    _add_write_flags(unset_parser)

    delegate_parser = subparsers.add_parser("delegate", help="Vote for or against a delegate")
    delegate_sub = delegate_parser.add_subparsers(dest="delegate_command", required=True)
    for name, help_text in (("vote", "Vote for a delegate"), ("unvote", "Remove a vote")):
        vote_parser = delegate_sub.add_parser(name, help=help_text)
        vote_parser.add_argument("id", help="Delegate UNIK id or @unikname")
        _add_write_flags(vote_parser)

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a UNIK id or @unikname")
    resolve_parser.add_argument("target", help="UNIK id or @unikname")
    resolve_parser.add_argument(
        "--chainmeta", action="store_true", help="Include chain height in the output"
    )

    wallet_parser = subparsers.add_parser(
        "get-wallet-address", help="Show the address behind a UNIK or a passphrase"
    )
    wallet_parser.add_argument(
        "id",
        nargs="?",
        default=None,
        help="UNIK id, @unikname or passphrase. Prompts for a passphrase when omitted.",
    )
    wallet_parser.add_argument(
        "--chainmeta", action="store_true", help="Include chain height in the output"
    )

    subparsers.add_parser("status", help="Show the state of the configured network")

    return parser


def _print_result(result: Any, output_format: str) -> None:
    if output_format == "yaml":
        print(yaml.safe_dump(result, sort_keys=False).rstrip())
    elif isinstance(result, dict) and any(isinstance(v, (dict, list)) for v in result.values()):
        print(json.dumps(result, indent=2))
    else:
        print(json.dumps(result, separators=COMPACT_JSON_SEPARATORS))


def _config_from_args(args: argparse.Namespace) -> NetworkConfig:
    return load_network_config(
        config_path=args.config,
        overrides={"network": args.network, "node": args.node, "services": args.services},
    )


def _context_from_args(args: argparse.Namespace) -> CommandContext:
    config = _config_from_args(args)
    return open_context(config, ledger=LedgerClient(config), prompt=prompt_masked, sleep=time.sleep)


def _write_request(args: argparse.Namespace, params: Any) -> WriteRequest:
    wait = WaitParams(await_blocks=args.await_blocks, confirmations=args.confirmations)
    # Flag errors are reported before any network access.
    validate_wait_flags(wait)
    return WriteRequest(
        params=params,
        credentials=Credentials(args.passphrase, args.second_passphrase),
        wait=wait,
        fee=args.fee,
    )


def _write_params(args: argparse.Namespace) -> tuple[WriteOperation, Any]:
    if args.command == "create-unik":
        return MINT, MintParams(explicit_value=args.explicit_value, unik_type=args.unik_type)
    if args.command == "transfer":
        return TRANSFER, TransferParams(target=args.target, recipient=args.recipient)
    if args.command == "set-properties":
        return SET_PROPERTIES, PropertiesParams(
            target=args.unikid, properties=parse_properties(args.properties)
        )
    if args.command == "properties":
        return UNSET_PROPERTIES, unset_properties_params(args.unikid, args.keys)
    if args.command == "delegate":
        return VOTE, VoteParams(delegate=args.id, unvote=args.delegate_command == "unvote")
    raise CLIError(f"Unknown command: {args.command}")  # pragma: no cover - argparse enforces choices


def cmd_write(args: argparse.Namespace) -> None:
    operation, params = _write_params(args)
    request = _write_request(args, params)
    context = _context_from_args(args)
    result = run_write_operation(context, operation, request)
    _print_result(result, args.output_format)


def cmd_resolve(args: argparse.Namespace) -> None:
    context = _context_from_args(args)
    resolved = context.resolver.resolve(args.target)
    result: dict[str, Any] = {"unikid": resolved.unik_id, "ownerAddress": resolved.owner_address}
    if resolved.transactions is not None:
        result["transactions"] = resolved.transactions
    if args.chainmeta:
        result["chainmeta"] = resolved.chain_meta.to_dict()
    _print_result(result, args.output_format)


def cmd_get_wallet_address(args: argparse.Namespace) -> None:
    context = _context_from_args(args)
    identifier = args.id
    if identifier and not is_passphrase(identifier):
        resolved = context.resolver.resolve(identifier)
        address = resolved.owner_address
        public_key = context.ledger.get_wallet(address).get("publicKey")
    else:
        passphrase = identifier or prompt_masked(PASSPHRASE_PROMPT)
        check_passphrase_format(passphrase)
        address = address_from_passphrase(passphrase, context.pub_key_hash)
        public_key = public_key_from_passphrase(passphrase)

    if args.output_format == "raw":
        print(address)
        return
    result: dict[str, Any] = {"address": address, "publicKey": public_key}
    if args.chainmeta:
        result["chainmeta"] = context.snapshot.to_dict()
    _print_result(result, args.output_format)


def cmd_status(args: argparse.Namespace) -> None:
    context = _context_from_args(args)
    _print_result(
        {
            "network": context.config.name,
            "node": context.config.node,
            "height": context.snapshot.height,
            "blocktime": context.block_time,
        },
        args.output_format,
    )


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        if args.output_format == "raw" and args.command != "get-wallet-address":
            raise CLIError("--format raw is only supported by get-wallet-address")
        if args.command == "resolve":
            cmd_resolve(args)
        elif args.command == "get-wallet-address":
            cmd_get_wallet_address(args)
        elif args.command == "status":
            cmd_status(args)
        else:
            cmd_write(args)
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        logger.info("Interrupted by user")
        parser.exit(1, "error: interrupted\n")
    except EOFError:
        parser.exit(1, "error: no passphrase provided\n")
    except InvariantViolationError as exc:
        parser.exit(3, f"internal error: {exc}\n")
    except (CLIError, ConfigurationError, UNSError) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
