"""JSON-RPC chain client over httpx.

Two submission modes:
- Node-managed account: ``eth_sendTransaction`` from ``from_address``
  (wallet providers and dev nodes).
- Local account: an eth_account ``LocalAccount``; the transaction is
  signed locally and sent with ``eth_sendRawTransaction``.
"""

import itertools
import logging
from typing import Any, Optional

import httpx
from eth_account.signers.local import LocalAccount
from web3 import Web3

from monoswap.amounts import parse_quantity
from monoswap.chain.base import ChainClient
from monoswap.config import Settings, get_settings
from monoswap.errors import ChainRpcError

logger = logging.getLogger(__name__)


class JsonRpcChainClient(ChainClient):
    """Chain client speaking Ethereum JSON-RPC."""

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        account: Optional[LocalAccount] = None,
        from_address: Optional[str] = None,
        chain_id: Optional[int] = None,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            rpc_url: JSON-RPC endpoint (defaults to the configured Monad RPC)
            account: eth_account local signer; transactions are signed here
            from_address: Sender for node-managed ``eth_sendTransaction``
            chain_id: Chain ID for locally signed transactions
            settings: Settings override
            http_client: Shared httpx client (tests inject a mock transport)
        """
        self.settings = settings or get_settings()
        self.rpc_url = rpc_url or self.settings.monad_rpc_url
        self.chain_id = chain_id if chain_id is not None else self.settings.monad_chain_id
        self.timeout = self.settings.rpc_timeout_seconds
        self.account = account
        self.from_address = account.address if account is not None else from_address
        self._http_client = http_client
        self._ids = itertools.count(1)

    async def _rpc(self, method: str, params: list) -> Any:
        """Send one JSON-RPC request and return its ``result``."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.rpc_url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ChainRpcError(f"{method} failed: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise ChainRpcError(f"{method} returned a non-JSON response") from e

        if not isinstance(data, dict):
            raise ChainRpcError(f"{method} returned an unexpected response body")

        if data.get("error"):
            error = data["error"]
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ChainRpcError(f"{method} error: {message}", code=code)

        return data.get("result")

    async def call(self, to: str, data: str) -> str:
        result = await self._rpc("eth_call", [{"to": to, "data": data}, "latest"])
        if not isinstance(result, str):
            raise ChainRpcError(f"eth_call returned {result!r}")
        return result

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        return await self._rpc("eth_getTransactionReceipt", [tx_hash])

    async def get_transaction_count(self, address: str) -> int:
        result = await self._rpc("eth_getTransactionCount", [address, "pending"])
        return parse_quantity(result)

    async def get_gas_price(self) -> int:
        """Get current gas price in wei."""
        result = await self._rpc("eth_gasPrice", [])
        return parse_quantity(result)

    async def send_transaction(self, tx: dict) -> str:
        if self.account is not None:
            return await self._send_signed(tx)

        if not self.from_address:
            raise ChainRpcError("No account or from_address configured for sending")

        params = {"from": self.from_address, **tx}
        tx_hash = await self._rpc("eth_sendTransaction", [params])
        logger.info(f"Transaction submitted: {tx_hash}")
        return tx_hash

    async def _send_signed(self, tx: dict) -> str:
        """Sign with the local account and broadcast the raw transaction."""
        address = self.account.address
        sender = tx.get("from")
        if sender and sender.lower() != address.lower():
            raise ChainRpcError(f"Transaction sender {sender} does not match local account {address}")

        tx_params = {
            "to": Web3.to_checksum_address(tx["to"]),
            "data": tx.get("data", "0x"),
            "value": parse_quantity(tx.get("value", 0)),
            "gas": parse_quantity(tx["gas"]),
            "nonce": await self.get_transaction_count(address),
            "gasPrice": await self.get_gas_price(),
            "chainId": self.chain_id,
        }

        signed_tx = self.account.sign_transaction(tx_params)
        # eth-account renamed rawTransaction to raw_transaction
        raw_tx = getattr(signed_tx, "raw_transaction", None) or signed_tx.rawTransaction
        raw_hex = raw_tx.hex()
        if not raw_hex.startswith("0x"):
            raw_hex = f"0x{raw_hex}"

        tx_hash = await self._rpc("eth_sendRawTransaction", [raw_hex])
        logger.info(f"Signed transaction broadcast from {address}: {tx_hash}")
        return tx_hash
