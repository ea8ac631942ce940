"""Boundary layer that hands prepared transactions to callers.

Everything here is pure assembly: callers sign and submit what this layer
returns.
"""

__all__ = [
    "contracts",
    "services",
]
