"""Shared configuration loader for the UNS CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


DEFAULT_CONFIG_PATH = Path.home() / ".uns.yaml"
DEFAULT_NETWORK = "livenet"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class NetworkPreset:
    node: str
    services: str
    explorer: str
    pub_key_hash: int
    block_time: int = 8


NETWORKS: dict[str, NetworkPreset] = {
    "livenet": NetworkPreset(
        node="https://api.uns.network",
        services="https://forger.unikname.app",
        explorer="https://explorer.uns.network",
        pub_key_hash=68,
    ),
    "sandbox": NetworkPreset(
        node="https://api.sandbox.uns.network",
        services="https://forger.sandbox.unikname.app",
        explorer="https://explorer.sandbox.uns.network",
        pub_key_hash=63,
    ),
    "dalinet": NetworkPreset(
        node="https://api.dalinet.uns.network",
        services="https://forger.dalinet.unikname.app",
        explorer="https://explorer.dalinet.uns.network",
        pub_key_hash=30,
    ),
    "local": NetworkPreset(
        node="http://localhost:4003",
        services="http://localhost:3000",
        explorer="http://localhost:4200",
        pub_key_hash=30,
    ),
}

# dalinet is a development network and stays hidden unless DEV_MODE is set.
_DEV_ONLY_NETWORKS = {"dalinet"}


@dataclass(frozen=True)
class NetworkConfig:
    """Resolved connection details for one command invocation."""

    name: str
    node: str
    services: str
    explorer: str
    pub_key_hash: int
    block_time: int
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    dev_mode: bool = False

    def transaction_url(self, transaction_id: str) -> str:
        return f"{self.explorer.rstrip('/')}/transaction/{transaction_id}"


def is_dev_mode(env: Mapping[str, str] | None = None) -> bool:
    env_map = os.environ if env is None else env
    return env_map.get("DEV_MODE") == "true"


def get_networks_list(env: Mapping[str, str] | None = None) -> list[str]:
    """Return the network names selectable from the command line."""

    dev_mode = is_dev_mode(env)
    return [name for name in NETWORKS if dev_mode or name not in _DEV_ONLY_NETWORKS]


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML object with a 'network' section")
    return loaded


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def _coerce_url(raw: Any, *, source: str) -> str | None:
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise ConfigurationError(f"Invalid URL in {source}: {value}")
    return value.rstrip("/")


def _coerce_timeout(raw: Any, *, source: str) -> float | None:
    if raw is None:
        return None
    try:
        timeout = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid timeout in {source}: {raw}") from exc
    if timeout <= 0:
        raise ConfigurationError(f"Timeout in {source} must be positive: {raw}")
    return timeout


def load_network_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> NetworkConfig:
    """Load network configuration from overrides, environment and optional YAML.

    Values are taken from the first source that provides them: explicit
    overrides (command-line flags), then ``UNS_*`` environment variables, then
    the ``network`` section of the config file, then the network preset.
    """

    env_map = os.environ if env is None else env
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH
    file_config = _load_config_file(path, required=config_path is not None)
    section = file_config.get("network", {}) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Expected 'network' to be a mapping in {path}")

    override_map = dict(overrides or {})

    name = _first_value(
        override_map.get("network"),
        env_map.get("UNS_NETWORK") or None,
        section.get("name"),
        DEFAULT_NETWORK,
    )
    available = get_networks_list(env_map)
    if name not in available:
        raise ConfigurationError(
            f"Unknown network '{name}'; expected one of: {', '.join(available)}"
        )
    preset = NETWORKS[name]

    node = _first_value(
        _coerce_url(override_map.get("node"), source="--node"),
        _coerce_url(env_map.get("UNS_NODE"), source="UNS_NODE"),
        _coerce_url(section.get("node"), source=f"{path} network.node"),
        preset.node,
    )
    services = _first_value(
        _coerce_url(override_map.get("services"), source="--services"),
        _coerce_url(env_map.get("UNS_SERVICES"), source="UNS_SERVICES"),
        _coerce_url(section.get("services"), source=f"{path} network.services"),
        preset.services,
    )
    timeout = _first_value(
        _coerce_timeout(override_map.get("timeout"), source="overrides"),
        _coerce_timeout(section.get("timeout"), source=f"{path} network.timeout"),
        DEFAULT_TIMEOUT_SECONDS,
    )

    return NetworkConfig(
        name=name,
        node=node,
        services=services,
        explorer=preset.explorer,
        pub_key_hash=preset.pub_key_hash,
        block_time=preset.block_time,
        timeout=timeout,
        dev_mode=is_dev_mode(env_map),
    )
