"""Transaction contracts handed to the caller for submission.

NO signing or broadcasting happens when these are built; the caller's
wallet or smart account submits them.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ExecutableTransaction(BaseModel):
    """A ready-to-submit transaction built from a reconciled quote."""

    model_config = ConfigDict(frozen=True)

    to: str = Field(
        ..., pattern=r"^0x[a-fA-F0-9]{40}$", description="Destination address (router or token contract)"
    )
    data: str = Field(..., pattern=r"^0x[a-fA-F0-9]*$", description="Calldata (hex encoded)")
    value: str = Field(default="0", pattern=r"^[0-9]+$", description="Value in wei as a decimal string")
    gas_limit: int = Field(..., gt=0, description="Gas limit before any caller safety margin")
    chain_id: Optional[int] = Field(None, description="EVM chain ID")
    description: Optional[str] = Field(None, description="Human-readable description")

    @property
    def value_wei(self) -> int:
        return int(self.value)

    def to_rpc_dict(self) -> dict:
        """Convert to JSON-RPC transaction fields (hex quantities)."""
        tx = {
            "to": self.to,
            "data": self.data,
            "value": hex(self.value_wei),
            "gas": hex(self.gas_limit),
        }
        if self.chain_id is not None:
            tx["chainId"] = hex(self.chain_id)
        return tx


class TransactionStatusResponse(BaseModel):
    """Status of a submitted transaction."""

    tx_hash: str = Field(..., description="Transaction hash")
    status: str = Field(..., description="Status: pending, confirmed, failed")
    block_number: Optional[int] = Field(None, description="Block number if mined")
    gas_used: Optional[int] = Field(None, description="Gas used")
    error: Optional[str] = Field(None, description="Error message if failed")
