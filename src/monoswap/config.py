"""Application configuration using pydantic-settings.

Covers the Monorail pathfinder aggregator, the Monad RPC endpoint and the
approval confirmation poll.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    # ======================
    # Monorail Aggregator
    # ======================
    monorail_api_url: str = Field(
        default="https://testnet-pathfinder.monorail.xyz",
        description="Monorail pathfinder base URL",
    )
    monorail_app_id: str = Field(
        default="0", description="App/referral id sent as the 'source' query parameter"
    )
    quote_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for a single quote request"
    )
    default_gas_estimate: int = Field(
        default=200000, gt=0, description="Gas estimate used when the aggregator omits one"
    )

    # ======================
    # Chain (Monad)
    # ======================
    monad_rpc_url: str = Field(
        default="https://testnet-rpc.monad.xyz", description="Monad JSON-RPC URL"
    )
    monad_chain_id: int = Field(default=10143, description="Monad chain ID")
    native_symbol: str = Field(default="MON", description="Native asset symbol")
    native_decimals: int = Field(default=18, ge=0, le=36, description="Native asset decimals")
    rpc_timeout_seconds: float = Field(default=15.0, gt=0, description="JSON-RPC request timeout")

    # ======================
    # Approvals
    # ======================
    approval_max_attempts: int = Field(
        default=30, gt=0, description="Receipt lookups before an approval times out"
    )
    approval_poll_interval_ms: int = Field(
        default=2000, ge=0, description="Delay between receipt lookups"
    )

    # ======================
    # Submission
    # ======================
    gas_buffer_percent: int = Field(
        default=10, ge=0, description="Safety margin callers add to the gas estimate"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_safe_dict(self) -> dict:
        """Return settings dict suitable for printing."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "monorail": {
                "api_url": self.monorail_api_url,
                "app_id": self.monorail_app_id,
                "timeout": self.quote_timeout_seconds,
                "default_gas": self.default_gas_estimate,
            },
            "chain": {
                "rpc": self.monad_rpc_url,
                "chain_id": self.monad_chain_id,
                "native": f"{self.native_symbol} ({self.native_decimals} decimals)",
            },
            "approvals": {
                "max_attempts": self.approval_max_attempts,
                "poll_interval_ms": self.approval_poll_interval_ms,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
