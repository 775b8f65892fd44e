"""Shared test helpers: principals, encoded event records and a fake ledger API."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import httpx

from indexer_service.services.clarity import (
    c32_address,
    cv_to_hex,
    encode_none,
    encode_principal,
    encode_some,
    encode_string_ascii,
    encode_tuple,
    encode_uint,
)

if TYPE_CHECKING:
    from indexer_service.services.ledger_client import LedgerClient

LEDGER_URL = "http://ledger.test"
TESTNET_VERSION = 26


def make_principal(seed: int) -> str:
    """A valid testnet standard principal derived from ``seed``."""
    return c32_address(TESTNET_VERSION, bytes([seed % 256]) * 20)


DEPLOYER = make_principal(0)
ALICE = make_principal(1)
BOB = make_principal(2)
CAROL = make_principal(3)


def u(value: int) -> bytes:
    return encode_uint(value)


def s(value: str) -> bytes:
    return encode_string_ascii(value)


def p(value: str) -> bytes:
    return encode_principal(value)


def some(inner: bytes) -> bytes:
    return encode_some(inner)


def none() -> bytes:
    return encode_none()


def event_record(tag: str, contract_id: str = "", **fields: bytes) -> dict[str, Any]:
    """
    Build a contract log record as the events endpoint returns it.

    Keyword names use underscores; they are written with hyphens on the wire.
    """
    payload = {"event": s(tag)}
    payload.update({name.replace("_", "-"): value for name, value in fields.items()})
    return {
        "event_index": 0,
        "event_type": "smart_contract_log",
        "contract_log": {
            "contract_id": contract_id,
            "topic": "print",
            "value": {"hex": cv_to_hex(encode_tuple(payload)), "repr": ""},
        },
    }


def record(**fields: bytes) -> bytes:
    """Encode a tuple whose keys are written with hyphens."""
    return encode_tuple({name.replace("_", "-"): value for name, value in fields.items()})


class FakeLedger:
    """
    In-memory stand-in for the ledger read API, served through httpx.MockTransport.

    Event logs are keyed by contract name. Read-only results are keyed by
    (contract, function) and optionally by the hex arguments; anything not
    registered answers ``(optional none)``.
    """

    def __init__(self) -> None:
        self.events: dict[str, list[dict[str, Any]]] = {}
        self.reads: dict[tuple[str, str, tuple[str, ...] | None], bytes] = {}
        self.failing_reads: set[tuple[str, str]] = set()
        self.failing_event_contracts: set[str] = set()
        self.requests: list[httpx.Request] = []

    def add_events(self, contract_name: str, *records: dict[str, Any]) -> None:
        self.events.setdefault(contract_name, []).extend(records)

    def set_read(
        self,
        contract_name: str,
        function_name: str,
        value: bytes,
        args: list[bytes] | None = None,
    ) -> None:
        key_args = tuple(cv_to_hex(arg) for arg in args) if args is not None else None
        self.reads[(contract_name, function_name, key_args)] = value

    def fail_read(self, contract_name: str, function_name: str) -> None:
        self.failing_reads.add((contract_name, function_name))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.strip("/").split("/")

        if request.method == "GET" and parts[:3] == ["extended", "v1", "contract"]:
            contract_name = parts[3].split(".", 1)[1]
            if contract_name in self.failing_event_contracts:
                return httpx.Response(500, json={"error": "boom"})
            limit = int(request.url.params.get("limit", "50"))
            offset = int(request.url.params.get("offset", "0"))
            records = self.events.get(contract_name, [])
            return httpx.Response(
                200,
                json={
                    "limit": limit,
                    "offset": offset,
                    "total": len(records),
                    "results": records[offset : offset + limit],
                },
            )

        if request.method == "POST" and parts[:3] == ["v2", "contracts", "call-read"]:
            contract_name, function_name = parts[4], parts[5]
            if (contract_name, function_name) in self.failing_reads:
                return httpx.Response(503, text="unavailable")
            args = tuple(json.loads(request.content)["arguments"])
            value = self.reads.get((contract_name, function_name, args))
            if value is None:
                value = self.reads.get((contract_name, function_name, None), encode_none())
            return httpx.Response(200, json={"okay": True, "result": cv_to_hex(value)})

        return httpx.Response(404, json={"error": "not found"})

    def install(self, ledger_client: LedgerClient) -> None:
        """Route a LedgerClient's HTTP traffic to this fake."""
        ledger_client._client = httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler),
            base_url=LEDGER_URL,
        )

    def count_requests(self, path_fragment: str) -> int:
        return sum(1 for request in self.requests if path_fragment in request.url.path)


def config_yaml(log_directory: str, ttl_seconds: int = 60, page_size: int = 50) -> str:
    """A complete config file pointing at the fake ledger."""
    return f"""\
service:
  name: "ledger-indexer"
  version: "0.1.0"
server:
  host: "127.0.0.1"
  port: 8010
  log_level: "info"
logging:
  level: "INFO"
  directory: "{log_directory}"
ledger:
  base_url: "{LEDGER_URL}"
  deployer: "{DEPLOYER}"
  sender: "{DEPLOYER}"
  timeout_seconds: 5
  page_size: {page_size}
contracts:
  registry: "agent-registry"
  vault: "agent-vault"
  task_board: "task-board"
  reputation: "reputation"
  launchpad: "agent-launchpad"
cache:
  ttl_seconds: {ttl_seconds}
launchpad:
  total_supply: 1000000000000000
  virtual_stx: 10000000000
  graduation_stx: 16667000000
  fee_bps: 100
"""
