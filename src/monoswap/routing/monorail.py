"""Monorail pathfinder integration.

Quotes come from the v4 quote endpoint, which takes human-readable amounts
and returns ready-to-submit calldata when a sender is given.
API docs: https://testnet-preview.monorail.xyz/developers/api-reference/pathfinder
"""

import logging
import re
from typing import Any, Optional

import httpx

from monoswap.amounts import is_valid_amount, is_zero
from monoswap.config import Settings, get_settings
from monoswap.errors import IncompleteQuote, InvalidAmount, MalformedQuote, QuoteUnavailable
from monoswap.routing.base import Quote, QuoteTransaction
from monoswap.tokens import is_valid_address, same_address

logger = logging.getLogger(__name__)

QUOTE_PATH = "/v4/quote"
MAX_SLIPPAGE_BPS = 7500

_CALLDATA_RE = re.compile(r"^0x[0-9a-fA-F]*$")


class MonorailQuoteClient:
    """Quote client for the Monorail pathfinder.

    Stateless apart from configuration; one instance can serve concurrent
    quotes. Pass ``http_client`` to share a connection pool or to substitute
    a mock transport in tests.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.monorail_api_url.rstrip("/")
        self.app_id = self.settings.monorail_app_id
        self.timeout = self.settings.quote_timeout_seconds
        self.default_gas = self.settings.default_gas_estimate
        self._http_client = http_client

    @property
    def name(self) -> str:
        return "monorail"

    def _get_headers(self) -> dict:
        return {"Accept": "application/json"}

    def build_params(
        self,
        from_token: str,
        to_token: str,
        amount: str,
        sender: Optional[str] = None,
        max_slippage_bps: Optional[int] = None,
        deadline_seconds: Optional[int] = None,
        destination: Optional[str] = None,
    ) -> dict:
        """Build and validate query parameters.

        Optional parameters are only sent when given; the aggregator's own
        slippage and deadline defaults apply otherwise.

        Raises:
            InvalidAmount: If amount is not a positive decimal string
            ValueError: If an address or optional parameter is invalid
        """
        if not is_valid_address(from_token):
            raise ValueError(f"Invalid from token address: {from_token!r}")
        if not is_valid_address(to_token):
            raise ValueError(f"Invalid to token address: {to_token!r}")
        if same_address(from_token, to_token):
            raise ValueError("from and to tokens must differ")
        if not isinstance(amount, str) or not is_valid_amount(amount):
            raise InvalidAmount(f"Invalid amount: {amount!r}")
        if is_zero(amount):
            raise InvalidAmount("Amount must be greater than zero")

        params = {
            "source": self.app_id,
            "from": from_token,
            "to": to_token,
            "amount": amount.strip(),
        }

        if sender is not None:
            if not is_valid_address(sender):
                raise ValueError(f"Invalid sender address: {sender!r}")
            params["sender"] = sender

        if max_slippage_bps is not None:
            if not 1 <= max_slippage_bps <= MAX_SLIPPAGE_BPS:
                raise ValueError(
                    f"max_slippage_bps must be between 1 and {MAX_SLIPPAGE_BPS}, got {max_slippage_bps}"
                )
            params["max_slippage"] = str(max_slippage_bps)

        if deadline_seconds is not None:
            if deadline_seconds <= 0:
                raise ValueError(f"deadline_seconds must be positive, got {deadline_seconds}")
            params["deadline"] = str(deadline_seconds)

        if destination is not None:
            if not is_valid_address(destination):
                raise ValueError(f"Invalid destination address: {destination!r}")
            params["destination"] = destination

        return params

    async def _fetch(self, params: dict) -> dict:
        """GET the quote endpoint and decode the JSON body."""
        url = f"{self.base_url}{QUOTE_PATH}"
        try:
            if self._http_client is not None:
                response = await self._http_client.get(
                    url, params=params, headers=self._get_headers(), timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, params=params, headers=self._get_headers())
        except httpx.TimeoutException as e:
            raise QuoteUnavailable(f"Monorail quote timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise QuoteUnavailable(f"Monorail request failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            logger.warning(f"Monorail API error: {response.status_code} - {response.text[:200]}")
            raise QuoteUnavailable(
                f"Monorail API returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise QuoteUnavailable("Monorail returned a non-JSON response") from e

        if not isinstance(data, dict):
            raise QuoteUnavailable("Monorail returned an unexpected response body")
        return data

    async def get_quote(
        self,
        from_token: str,
        to_token: str,
        amount: str,
        sender: Optional[str] = None,
        max_slippage_bps: Optional[int] = None,
        deadline_seconds: Optional[int] = None,
        destination: Optional[str] = None,
        require_executable: bool = True,
    ) -> Quote:
        """Get a swap quote from Monorail.

        Args:
            from_token: Source token address (zero address for MON)
            to_token: Destination token address
            amount: Human-readable amount, e.g. "1.5"
            sender: Address that will submit the swap; needed for calldata
            max_slippage_bps: Slippage cap in basis points (1-7500)
            deadline_seconds: Validity window in seconds
            destination: Recipient of the output tokens
            require_executable: Fail when the quote has no usable calldata.
                Pass False for pricing-only lookups.

        Returns:
            Normalized Quote. ``transaction.value`` is the raw aggregator
            value and must go through the value reconciler before use.

        Raises:
            QuoteUnavailable: Network error, timeout or non-2xx status
            IncompleteQuote: No usable calldata in the response
            MalformedQuote: Response fields fail validation
        """
        params = self.build_params(
            from_token,
            to_token,
            amount,
            sender=sender,
            max_slippage_bps=max_slippage_bps,
            deadline_seconds=deadline_seconds,
            destination=destination,
        )

        logger.info(
            f"Requesting Monorail quote: {params['amount']} {from_token} -> {to_token} "
            f"(sender={'set' if sender else 'none'})"
        )
        data = await self._fetch(params)

        quote = self.parse_quote(data, from_token, to_token, params["amount"])
        logger.debug(f"Monorail quote: {quote.to_dict()}")

        if require_executable and not quote.is_executable:
            if sender is None:
                raise IncompleteQuote(
                    "Monorail returned no transaction data. "
                    "Provide a sender address to get an executable quote."
                )
            raise IncompleteQuote(
                f"Monorail could not route {params['amount']} {from_token} -> {to_token}"
            )

        logger.info(
            f"Monorail quote: {quote.from_amount} -> {quote.to_amount} "
            f"(gas={quote.estimated_gas}{', fallback' if quote.gas_estimate_is_fallback else ''})"
        )
        return quote

    def parse_quote(self, data: dict, from_token: str, to_token: str, amount: str) -> Quote:
        """Validate a raw response and normalize it into a Quote."""
        output = data.get("output_formatted")
        if output is None:
            raise MalformedQuote("Monorail response is missing output_formatted")
        output = str(output)
        if not is_valid_amount(output):
            raise MalformedQuote(f"Invalid output_formatted: {output!r}")

        gas_estimate, is_fallback = self._parse_gas_estimate(data.get("gas_estimate"))

        tx = data.get("transaction") or {}
        if not isinstance(tx, dict):
            raise MalformedQuote("Monorail transaction field is not an object")

        to = tx.get("to") or None
        if to is not None and not is_valid_address(to):
            raise MalformedQuote(f"Invalid transaction target: {to!r}")

        calldata = tx.get("data") or None
        if calldata is not None and (not isinstance(calldata, str) or not _CALLDATA_RE.match(calldata)):
            raise MalformedQuote(f"Invalid transaction data: {calldata!r}")

        value = tx.get("value")
        if value is not None and not isinstance(value, str):
            value = str(value)

        routes = data.get("routes") or []

        return Quote(
            from_token=from_token,
            to_token=to_token,
            from_amount=amount,
            to_amount=output,
            estimated_gas=gas_estimate,
            gas_estimate_is_fallback=is_fallback,
            routes=tuple(routes) if isinstance(routes, list) else (routes,),
            transaction=QuoteTransaction(
                to=to,
                data=calldata,
                value=value,
                gas_limit=gas_estimate,
            ),
        )

    def _parse_gas_estimate(self, raw: Any) -> tuple[int, bool]:
        """Return (gas, is_fallback)."""
        if raw is None:
            logger.warning(
                f"Monorail omitted gas_estimate; using default {self.default_gas} (low confidence)"
            )
            return self.default_gas, True

        if isinstance(raw, bool):
            raise MalformedQuote(f"Invalid gas_estimate: {raw!r}")
        if isinstance(raw, int):
            gas = raw
        elif isinstance(raw, str) and raw.strip().isascii() and raw.strip().isdigit():
            gas = int(raw.strip())
        else:
            raise MalformedQuote(f"Invalid gas_estimate: {raw!r}")

        if gas <= 0:
            raise MalformedQuote(f"gas_estimate must be positive, got {gas}")
        return gas, False


def create_monorail_client(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> MonorailQuoteClient:
    """Create a Monorail quote client."""
    return MonorailQuoteClient(settings=settings, http_client=http_client)
