"""Contracts for data handed to callers."""

from monoswap.web.contracts.transactions import ExecutableTransaction, TransactionStatusResponse

__all__ = ["ExecutableTransaction", "TransactionStatusResponse"]
