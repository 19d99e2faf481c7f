import os

from pathlib import Path
from typing import Any, Dict

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


DEFAULT_RPC_URLS: Dict[int, str] = {
    1: "https://eth.llamarpc.com",
    10: "https://mainnet.optimism.io",
    137: "https://polygon-rpc.com",
    8453: "https://mainnet.base.org",
    42161: "https://arb1.arbitrum.io/rpc",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up legacy environment variable aliases."""

        super().model_post_init(__context)

        if not self.private_key:
            fallback = os.getenv("WALLET_PRIVATE_KEY") or os.getenv("MNEMONIC")
            if fallback:
                object.__setattr__(self, "private_key", fallback)

    log_level: str = Field(default="INFO", description="Logging level")

    # Bungee settlement service
    bungee_base_url: str = Field(
        default="https://public-backend.bungee.exchange",
        description="Base URL for the Bungee public backend",
    )
    bungee_api_key: str = Field(default="", description="Optional Bungee API key")
    request_timeout_seconds: int = Field(default=20, description="HTTP request timeout")

    # Fee collection (basis points, 20 = 0.2%)
    fee_taker_address: str = Field(
        default="0x02Bc8c352b58d929Cc3D60545511872c85F30650",
        description="Treasury receiving the swap fee",
    )
    fee_bps: str = Field(default="20", description="Swap fee in basis points")

    # Token search cache
    search_cache_ttl_seconds: int = Field(
        default=60,
        description="TTL for token search results (search endpoint is rate limited)",
    )
    search_cache_max_size: int = Field(default=256, description="Maximum cached search queries")

    # Retry policy for network calls
    retry_attempts: int = Field(default=3, ge=1, description="Attempts per retried network call")
    retry_delay_seconds: float = Field(default=1.0, ge=0, description="Base delay between retries")

    # Settlement status polling (status endpoint allows ~5 calls/min)
    poll_max_attempts: int = Field(default=20, ge=1, description="Maximum status queries per swap")
    poll_fast_attempts: int = Field(default=4, ge=0, description="Queries using the fast interval")
    poll_fast_interval_seconds: float = Field(default=15.0, description="Delay between early queries")
    poll_slow_interval_seconds: float = Field(default=30.0, description="Delay between later queries")
    tracking_base_url: str = Field(
        default="https://socketscan.io/tx",
        description="Explorer used to track a settlement out-of-band",
    )

    # Chain access
    rpc_urls: Dict[int, str] = Field(
        default_factory=lambda: dict(DEFAULT_RPC_URLS),
        description="JSON-RPC endpoint per chain id",
    )
    receipt_timeout_seconds: int = Field(default=300, description="Max wait for a transaction receipt")
    gas_multiplier: float = Field(default=1.1, ge=1.0, description="Safety multiplier on gas estimates")

    # Signing key (storage is handled outside this package)
    private_key: str = Field(
        default="",
        description="Private key or mnemonic used by the local signer",
        validation_alias=AliasChoices("private_key", "PRIVATE_KEY"),
    )

    @property
    def has_private_key(self) -> bool:
        return bool(self.private_key)


# Global settings instance
settings = Settings()
