"""Monorail swap preparation for Monad.

Quotes a swap, fixes up the native value field, drives the ERC20 approval
handshake and returns a transaction ready for the caller to submit.
"""

__version__ = "0.1.0"
