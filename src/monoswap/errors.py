"""Error types for the swap pipeline.

Every failure kind carries a ``retryable`` flag and a distinct user-facing
message. Transient network failures are retryable as-is; data-integrity
failures need different swap parameters before another attempt.
"""

from typing import Optional


class SwapError(Exception):
    """Base class for swap pipeline errors."""

    retryable = False
    user_message = "The swap could not be prepared."


class InvalidAmount(SwapError, ValueError):
    """Amount is not a well-formed non-negative decimal."""

    user_message = "The amount is not a valid number."


class QuoteUnavailable(SwapError):
    """Aggregator request failed, timed out or returned a non-2xx status."""

    retryable = True
    user_message = "The price service is unreachable right now."

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IncompleteQuote(SwapError):
    """Aggregator could not produce executable calldata for the trade."""

    user_message = "No executable route was found for this swap."


class MalformedQuote(SwapError):
    """A quote violates an invariant that earlier validation should guarantee."""

    user_message = "The price service returned inconsistent data."


class UnexpectedNativeValue(SwapError):
    """Aggregator attached a native value to a swap that spends an ERC20 token."""

    user_message = "The swap was blocked because the quote would send native funds unexpectedly."


class ApprovalSubmissionFailed(SwapError):
    """Approval transaction was rejected by the signer or the network."""

    user_message = "The token approval could not be submitted."


class ApprovalFailed(SwapError):
    """Approval transaction was mined but reverted."""

    user_message = "The token approval was rejected on-chain."

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class ConfirmationTimeout(SwapError):
    """No receipt was found within the polling budget."""

    user_message = "The approval was not confirmed in time. Check its status before approving again."

    def __init__(self, message: str, tx_hash: Optional[str] = None, attempts: int = 0):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.attempts = attempts


class UnknownToken(SwapError):
    """Token address is not in the registry."""

    user_message = "This token is not supported."


class ChainRpcError(SwapError):
    """JSON-RPC call failed or returned an error object."""

    retryable = True
    user_message = "The blockchain node is unreachable right now."

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


def describe_error(exc: BaseException) -> str:
    """Map an exception to the message shown to the user."""
    if not isinstance(exc, SwapError):
        return "Unexpected error while preparing the swap."

    if exc.retryable:
        return f"{exc.user_message} You can try again."
    return f"{exc.user_message} Change the swap parameters before retrying."
