import pytest
import requests

from uns_cli.config import NetworkConfig
from uns_cli.errors import FormatError, LedgerTransportError, NotFoundError
from uns_cli.ledger import LedgerClient

NODE = "http://node:4003"
SERVICES = "http://services:3000"


class StubResponse:
    def __init__(self, status_code: int = 200, body=None, text: str = "", url: str = "") -> None:
        self.status_code = status_code
        self._body = body
        self.text = text
        self.url = url

    def json(self):
        if self._body is None:
            raise ValueError("no JSON")
        return self._body


class StubSession:
    def __init__(self, routes=None, error: Exception | None = None) -> None:
        self.routes = routes or {}
        self.error = error
        self.calls: list[dict] = []

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.routes.get((method, url), StubResponse(404, {"message": "missing"}, url=url))


def _client(session: StubSession) -> LedgerClient:
    config = NetworkConfig(
        name="local",
        node=NODE,
        services=SERVICES,
        explorer="http://explorer",
        pub_key_hash=30,
        block_time=8,
        timeout=5.0,
    )
    return LedgerClient(config, session=session)


def test_get_unik_by_id_attaches_chainmeta() -> None:
    session = StubSession(
        {("GET", f"{NODE}/api/v2/uniks/abc"): StubResponse(200, {"data": {"id": "abc", "ownerId": "U1"}, "chainmeta": {"height": 9}})}
    )

    unik = _client(session).get_unik_by_id("abc")

    assert unik == {"id": "abc", "ownerId": "U1", "chainmeta": {"height": 9}}
    assert session.calls[0]["headers"]["api-version"] == "2"
    assert session.calls[0]["timeout"] == 5.0


def test_missing_unik_raises_not_found() -> None:
    with pytest.raises(NotFoundError):
        _client(StubSession()).get_unik_by_id("abc")


def test_unknown_wallet_has_nonce_zero() -> None:
    assert _client(StubSession()).get_account_nonce("U1") == 0


def test_wallet_nonce_is_parsed() -> None:
    session = StubSession({("GET", f"{NODE}/api/v2/wallets/U1"): StubResponse(200, {"data": {"nonce": "12"}})})
    assert _client(session).get_account_nonce("U1") == 12


def test_get_transaction_returns_none_while_unknown() -> None:
    session = StubSession()
    assert _client(session).get_transaction("tx", 8000) is None
    assert session.calls[0]["timeout"] == 8.0


def test_resolve_symbolic_name_goes_through_fingerprint() -> None:
    session = StubSession(
        {
            ("POST", f"{SERVICES}/api/v1/uniks/fingerprint"): StubResponse(200, {"data": {"fingerprint": "fp"}}),
            ("GET", f"{NODE}/api/v2/uniks/fp"): StubResponse(200, {"data": {"id": "fp", "ownerId": "U2"}, "chainmeta": {"height": 3}}),
        }
    )

    resolved = _client(session).resolve_symbolic_name("bob", "individual")

    assert resolved == {"data": {"unikid": "fp", "ownerAddress": "U2"}, "error": None, "chainmeta": {"height": 3}}
    assert session.calls[0]["json"] == {"explicitValue": "bob", "type": "individual"}


def test_resolve_symbolic_name_reports_miss_as_error() -> None:
    session = StubSession(
        {("POST", f"{SERVICES}/api/v1/uniks/fingerprint"): StubResponse(200, {"data": {"fingerprint": "fp"}})}
    )

    resolved = _client(session).resolve_symbolic_name("bob", "individual")

    assert resolved["data"] is None
    assert isinstance(resolved["error"], NotFoundError)


def test_compute_fingerprint_rejects_unknown_type() -> None:
    session = StubSession()
    with pytest.raises(FormatError):
        _client(session).compute_fingerprint("bob", "robot")
    assert session.calls == []


def test_submit_returns_rejection_body() -> None:
    body = {"data": {"accept": [], "invalid": ["tx"]}, "errors": {"tx": [{"type": "ERR"}]}}
    session = StubSession({("POST", f"{NODE}/api/v2/transactions"): StubResponse(422, body)})

    assert _client(session).submit_transaction({"id": "tx"}) == body
    assert session.calls[0]["json"] == {"transactions": [{"id": "tx"}]}


def test_server_error_becomes_transport_error() -> None:
    session = StubSession({("GET", f"{NODE}/api/v2/blockchain"): StubResponse(500, {"message": "boom"})})

    with pytest.raises(LedgerTransportError) as excinfo:
        _client(session).get_current_height()

    assert excinfo.value.status_code == 500
    assert "boom" in str(excinfo.value)


def test_connection_failure_becomes_transport_error() -> None:
    session = StubSession(error=requests.ConnectionError("refused"))
    with pytest.raises(LedgerTransportError):
        _client(session).get_node_configuration()


def test_malformed_json_is_reported() -> None:
    session = StubSession({("GET", f"{NODE}/api/v2/node/status"): StubResponse(200, None, text="<html>")})
    with pytest.raises(LedgerTransportError):
        _client(session).get_node_status_height()
