"""Pytest configuration and fixtures."""

import os
from typing import Callable, Optional

import httpx
import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"

from monoswap.chain.base import ChainClient
from monoswap.config import Settings
from monoswap.routing.monorail import MonorailQuoteClient
from monoswap.tokens import MONAD_TOKENS, NATIVE_TOKEN_ADDRESS

MON = NATIVE_TOKEN_ADDRESS
USDC = MONAD_TOKENS["USDC"]
WMON = MONAD_TOKENS["WMON"]
SENDER = "0x742d35cc6647c86c0ade0858c48884b1d2c1e7e5"
ROUTER = "0x525b929fcd6865ef8bd5b8c8d2d5a4c7e5f5e3a1"
CALLDATA = "0x5c2c9d7a" + "00" * 64


def quote_payload(**overrides) -> dict:
    """A realistic Monorail quote response body."""
    payload = {
        "output_formatted": "1.234567",
        "gas_estimate": 215000,
        "routes": [{"dex": "kuru", "share": 100}],
        "transaction": {
            "to": ROUTER,
            "data": CALLDATA,
            "value": "0x0",
        },
    }
    payload.update(overrides)
    return payload


class FakeChain(ChainClient):
    """In-memory chain: allowances, submissions and receipts."""

    def __init__(self, allowance: int = 0):
        self.allowance = allowance
        self.calls: list[tuple[str, str]] = []
        self.sent: list[dict] = []
        self.receipt_lookups = 0
        self.receipts: dict[str, Optional[dict]] = {}
        self.confirm_after = 1  # lookups before a receipt appears
        self.receipt_status = "0x1"
        self.send_error: Optional[Exception] = None
        self.approve_sets_allowance = True
        self.pending_allowance: Optional[int] = None

    async def call(self, to: str, data: str) -> str:
        self.calls.append((to, data))
        return "0x" + hex(self.allowance)[2:].zfill(64)

    async def send_transaction(self, tx: dict) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(tx)
        tx_hash = "0x" + f"{len(self.sent):064x}"
        if self.approve_sets_allowance and tx["data"].startswith("0x095ea7b3"):
            self.pending_allowance = int(tx["data"][-64:], 16)
        return tx_hash

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        self.receipt_lookups += 1
        if self.confirm_after is None or self.receipt_lookups < self.confirm_after:
            return None
        if self.receipt_status == "0x1" and self.pending_allowance is not None:
            self.allowance = self.pending_allowance
        return {
            "transactionHash": tx_hash,
            "status": self.receipt_status,
            "blockNumber": "0x10",
            "gasUsed": "0xb411",
        }


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's .env."""
    return Settings(
        _env_file=None,
        monorail_api_url="https://pathfinder.test",
        monorail_app_id="42",
        approval_max_attempts=5,
        approval_poll_interval_ms=0,
    )


@pytest.fixture
def make_quote_client(settings) -> Callable:
    """Build a quote client whose HTTP layer is a handler function."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> MonorailQuoteClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return MonorailQuoteClient(settings=settings, http_client=http_client)

    return factory


@pytest.fixture
def fake_chain() -> FakeChain:
    return FakeChain()
