"""Services that prepare transactions without signing them.

SECURITY: These services MUST NOT:
- Access private keys or signers
- Sign or broadcast transactions
"""

from monoswap.web.services.transaction_builder import TransactionBuilder, apply_gas_buffer

__all__ = [
    "TransactionBuilder",
    "apply_gas_buffer",
]
