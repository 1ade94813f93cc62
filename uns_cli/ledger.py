"""HTTP client for UNS nodes and the UNS services provider.

The client is intentionally thin: each helper maps to one REST endpoint of the
node (``/api/v2/...``) or of the services provider that computes UNIK
fingerprints, and returns the parsed JSON body. Lookups that find nothing raise
:class:`~uns_cli.errors.NotFoundError`; everything else that goes wrong on the
wire surfaces as :class:`~uns_cli.errors.LedgerTransportError`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

import requests
from requests import RequestException, Response

from .config import NetworkConfig
from .errors import FormatError, LedgerTransportError, NotFoundError
from .model import UNIK_TYPES

logger = logging.getLogger(__name__)


class LedgerClient:
    """Read and submit operations against a UNS node.

    GET helpers are side-effect free and safe to repeat. ``submit_transaction``
    is not idempotent and callers must invoke it at most once per transaction.
    """

    def __init__(self, config: NetworkConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._session = session or requests.Session()

    def _url(self, base: str, path: str) -> str:
        return f"{base.rstrip('/')}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        url: str,
        *,
        json_payload: Dict[str, Any] | None = None,
        timeout: float | None = None,
        accept_status: Iterable[int] = (),
    ) -> Dict[str, Any]:
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                json=json_payload,
                headers={"content-type": "application/json", "api-version": "2"},
                timeout=timeout if timeout is not None else self.config.timeout,
            )
        except RequestException as exc:
            logger.error(
                "Node connection failed: %s",
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise LedgerTransportError(
                f"Unable to reach {url}. Check --node/--services (or UNS_NODE/UNS_SERVICES) "
                "and your network connection."
            ) from exc

        if response.status_code == 404:
            raise NotFoundError(f"Not found: {url}")
        if response.status_code >= 400 and response.status_code not in set(accept_status):
            self._raise_http_error(response)
        try:
            body = response.json()
        except ValueError as exc:
            logger.debug("Malformed JSON from %s: %s", url, response.text, exc_info=True)
            raise LedgerTransportError(f"{url} returned malformed JSON") from exc
        if not isinstance(body, dict):
            raise LedgerTransportError(f"{url} returned an unexpected payload")
        return body

    def _raise_http_error(self, response: Response) -> None:
        try:
            err_body: Any = response.json()
        except ValueError:
            err_body = response.text
        logger.error("HTTP error %s from %s", response.status_code, response.url)
        logger.debug("Error body: %s", err_body)
        message = None
        if isinstance(err_body, dict):
            message = err_body.get("message") or err_body.get("error")
        raise LedgerTransportError(
            f"Request failed with HTTP {response.status_code}" + (f": {message}" if message else ""),
            status_code=response.status_code,
            body=err_body,
        )

    def _node(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        return self._request(method, self._url(self.config.node, path), **kwargs)

    def _services(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        return self._request(method, self._url(self.config.services, path), **kwargs)

    # Chain state ---------------------------------------------------------

    def get_node_configuration(self) -> Dict[str, Any]:
        return self._node("GET", "/api/v2/node/configuration").get("data") or {}

    def get_current_height(self) -> int:
        body = self._node("GET", "/api/v2/blockchain")
        return int(((body.get("data") or {}).get("block") or {}).get("height", 0))

    def get_node_status_height(self) -> int:
        body = self._node("GET", "/api/v2/node/status")
        return int((body.get("data") or {}).get("now", 0))

    # UNIKs ---------------------------------------------------------------

    def get_unik_by_id(self, unik_id: str) -> Dict[str, Any]:
        """Return the UNIK record with its ``chainmeta`` attached."""

        body = self._node("GET", f"/api/v2/uniks/{unik_id}")
        unik = dict(body.get("data") or {})
        unik["chainmeta"] = body.get("chainmeta") or {}
        return unik

    def compute_fingerprint(self, explicit_value: str, unik_type: str) -> str:
        """Ask the services provider for the token id of ``explicit_value``."""

        if unik_type not in UNIK_TYPES:
            raise FormatError(f"Unknown UNIK type: {unik_type}")
        body = self._services(
            "POST",
            "/api/v1/uniks/fingerprint",
            json_payload={"explicitValue": explicit_value, "type": unik_type},
        )
        fingerprint = (body.get("data") or {}).get("fingerprint")
        if not fingerprint:
            raise LedgerTransportError("Services provider returned no fingerprint")
        return str(fingerprint)

    def resolve_symbolic_name(self, explicit_value: str, unik_type: str) -> Dict[str, Any]:
        """Resolve a unikname into ``{"data", "error", "chainmeta"}``.

        Lookup misses are reported through the ``error`` field rather than
        raised, so the caller decides how a miss is surfaced.
        """

        try:
            fingerprint = self.compute_fingerprint(explicit_value, unik_type)
            body = self._node("GET", f"/api/v2/uniks/{fingerprint}")
        except NotFoundError as exc:
            return {"data": None, "error": exc, "chainmeta": None}

        unik = body.get("data") or None
        data = None
        if unik:
            data = {"unikid": unik.get("id", fingerprint), "ownerAddress": unik.get("ownerId")}
        return {"data": data, "error": None, "chainmeta": body.get("chainmeta")}

    # Wallets -------------------------------------------------------------

    def get_wallet(self, address: str) -> Dict[str, Any]:
        body = self._node("GET", f"/api/v2/wallets/{address}")
        wallet = dict(body.get("data") or {})
        wallet["chainmeta"] = body.get("chainmeta") or {}
        return wallet

    def get_account_nonce(self, address: str) -> int:
        try:
            wallet = self.get_wallet(address)
        except NotFoundError:
            logger.debug("Wallet %s unknown to the node; using nonce 0", address)
            return 0
        return int(wallet.get("nonce") or 0)

    # Transactions --------------------------------------------------------

    def get_transaction(self, transaction_id: str, timeout_ms: float) -> Optional[Dict[str, Any]]:
        """Return the indexed transaction, or ``None`` while it is unknown."""

        try:
            body = self._node(
                "GET",
                f"/api/v2/transactions/{transaction_id}",
                timeout=max(timeout_ms / 1000.0, 1.0),
            )
        except NotFoundError:
            return None
        return body.get("data") or None

    def submit_transaction(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        # Invalid transactions come back as HTTP 422 with an ``errors`` map.
        return self._node(
            "POST",
            "/api/v2/transactions",
            json_payload={"transactions": [payload]},
            accept_status=(422,),
        )
