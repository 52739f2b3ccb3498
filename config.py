"""Configuration management for the treasury service."""

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
from eth_account import Account
from eth_utils import is_address

from core.errors import ConfigurationError
from core.types import Endpoint

logger = logging.getLogger(__name__)

DEFAULT_RPC_URLS = [
    "https://eth.llamarpc.com",
    "https://rpc.ankr.com/eth",
    "https://ethereum.publicnode.com",
    "https://1rpc.io/eth",
    "https://eth-mainnet.public.blastapi.io",
    "https://eth.drpc.org",
]

_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TreasuryConfig:
    """Main service configuration."""

    # Chain settings
    rpc_urls: List[str] = field(default_factory=lambda: list(DEFAULT_RPC_URLS))
    chain_id: int = 1
    private_key: str = ""  # empty means read-only mode

    # Wallets
    treasury_address: str = "0x0ff31d4cdce8b3f7929c04ebd4cd852608dc09f4"
    coinbase_address: str = "0x4024fd78e2ad5532fbf3ec2b3ec83870fae45fc7"

    # Economics
    eth_price: Decimal = Decimal("3450")
    fee_reserve_eth: Decimal = Decimal("0.003")
    min_gas_eth: Decimal = Decimal("0.01")
    recycle_min_earnings_usd: Decimal = Decimal("35")
    auto_recycle_enabled: bool = True

    # Connection policy
    probe_timeout: float = 6.0
    connect_attempts: int = 3
    connect_backoff: float = 1.0
    confirmation_timeout: float = 120.0
    receipt_poll_interval: float = 2.0

    # API settings
    explorer_tx_url: str = "https://etherscan.io/tx/"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @property
    def endpoints(self) -> List[Endpoint]:
        return [Endpoint(url=url, chain_id=self.chain_id) for url in self.rpc_urls]

    @classmethod
    def from_env(cls) -> "TreasuryConfig":
        """Load configuration from environment variables.

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        defaults = cls()
        try:
            rpc_env = os.getenv("RPC_URLS")
            return cls(
                rpc_urls=[u.strip() for u in rpc_env.split(",") if u.strip()] if rpc_env else defaults.rpc_urls,
                chain_id=int(os.getenv("CHAIN_ID", str(defaults.chain_id))),
                private_key=os.getenv("TREASURY_PRIVATE_KEY", ""),
                treasury_address=os.getenv("TREASURY_WALLET", defaults.treasury_address),
                coinbase_address=os.getenv("COINBASE_WALLET", defaults.coinbase_address),
                eth_price=Decimal(os.getenv("ETH_PRICE", str(defaults.eth_price))),
                fee_reserve_eth=Decimal(os.getenv("FEE_RESERVE_ETH", str(defaults.fee_reserve_eth))),
                min_gas_eth=Decimal(os.getenv("MIN_GAS_ETH", str(defaults.min_gas_eth))),
                recycle_min_earnings_usd=Decimal(
                    os.getenv("RECYCLE_MIN_EARNINGS_USD", str(defaults.recycle_min_earnings_usd))
                ),
                auto_recycle_enabled=_env_bool(os.getenv("AUTO_RECYCLE_ENABLED", "true")),
                probe_timeout=float(os.getenv("PROBE_TIMEOUT", str(defaults.probe_timeout))),
                connect_attempts=int(os.getenv("CONNECT_ATTEMPTS", str(defaults.connect_attempts))),
                connect_backoff=float(os.getenv("CONNECT_BACKOFF", str(defaults.connect_backoff))),
                confirmation_timeout=float(os.getenv("CONFIRMATION_TIMEOUT", str(defaults.confirmation_timeout))),
                receipt_poll_interval=float(os.getenv("RECEIPT_POLL_INTERVAL", str(defaults.receipt_poll_interval))),
                explorer_tx_url=os.getenv("EXPLORER_TX_URL", defaults.explorer_tx_url),
                host=os.getenv("HOST", defaults.host),
                port=int(os.getenv("PORT", str(defaults.port))),
                log_level=os.getenv("LOG_LEVEL", defaults.log_level),
            )
        except (ValueError, InvalidOperation) as e:
            raise ConfigurationError(f"Invalid environment configuration: {e}")

    @classmethod
    def from_file(cls, config_path: Path) -> "TreasuryConfig":
        """Load configuration from TOML file.

        The signing key is never read from the file; it comes from
        TREASURY_PRIVATE_KEY.

        Args:
            config_path: Path to configuration file

        Returns:
            TreasuryConfig instance

        Raises:
            ConfigurationError: If config is invalid
        """
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        logger.info(f"Loading configuration from {config_path}")

        try:
            with open(config_path, "r") as f:
                config_data: Dict[str, Any] = toml.load(f)
        except Exception as e:
            raise ConfigurationError(f"Failed to parse configuration file: {e}")

        defaults = cls()
        try:
            rpc_urls = config_data.get("rpc_urls", defaults.rpc_urls)
            if not isinstance(rpc_urls, list):
                raise ConfigurationError("rpc_urls must be a list of URLs")

            return cls(
                rpc_urls=[str(u) for u in rpc_urls],
                chain_id=int(config_data.get("chain_id", defaults.chain_id)),
                private_key=os.getenv("TREASURY_PRIVATE_KEY", ""),
                treasury_address=config_data.get("treasury_address", defaults.treasury_address),
                coinbase_address=config_data.get("coinbase_address", defaults.coinbase_address),
                eth_price=Decimal(str(config_data.get("eth_price", defaults.eth_price))),
                fee_reserve_eth=Decimal(str(config_data.get("fee_reserve_eth", defaults.fee_reserve_eth))),
                min_gas_eth=Decimal(str(config_data.get("min_gas_eth", defaults.min_gas_eth))),
                recycle_min_earnings_usd=Decimal(
                    str(config_data.get("recycle_min_earnings_usd", defaults.recycle_min_earnings_usd))
                ),
                auto_recycle_enabled=bool(config_data.get("auto_recycle_enabled", defaults.auto_recycle_enabled)),
                probe_timeout=float(config_data.get("probe_timeout", defaults.probe_timeout)),
                connect_attempts=int(config_data.get("connect_attempts", defaults.connect_attempts)),
                connect_backoff=float(config_data.get("connect_backoff", defaults.connect_backoff)),
                confirmation_timeout=float(config_data.get("confirmation_timeout", defaults.confirmation_timeout)),
                receipt_poll_interval=float(config_data.get("receipt_poll_interval", defaults.receipt_poll_interval)),
                explorer_tx_url=config_data.get("explorer_tx_url", defaults.explorer_tx_url),
                host=config_data.get("host", defaults.host),
                port=int(os.getenv("PORT", config_data.get("port", defaults.port))),
                log_level=config_data.get("log_level", defaults.log_level),
            )
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "TreasuryConfig":
        """Load from a TOML file if one is named, otherwise from the environment."""
        config_path = config_path or os.getenv("TREASURY_CONFIG")
        if config_path:
            return cls.from_file(Path(config_path))
        return cls.from_env()

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.rpc_urls:
            raise ConfigurationError("At least one RPC endpoint is required")

        for url in self.rpc_urls:
            if not url.startswith(("http://", "https://")):
                raise ConfigurationError(f"Malformed RPC endpoint: {url!r}")

        if len(set(self.rpc_urls)) != len(self.rpc_urls):
            raise ConfigurationError("RPC endpoint list contains duplicates")

        if self.chain_id < 1:
            raise ConfigurationError("chain_id must be positive")

        if self.private_key and not _PRIVATE_KEY_RE.match(self.private_key):
            raise ConfigurationError("TREASURY_PRIVATE_KEY must be a 32-byte hex string")

        if self.private_key:
            try:
                Account.from_key(self.private_key)
            except Exception as e:
                raise ConfigurationError(f"TREASURY_PRIVATE_KEY is not a usable key: {e}") from e

        for name in ("treasury_address", "coinbase_address"):
            if not is_address(getattr(self, name)):
                raise ConfigurationError(f"{name} is not a valid address")

        if self.eth_price <= 0:
            raise ConfigurationError("eth_price must be positive")

        if self.fee_reserve_eth < 0 or self.min_gas_eth < 0 or self.recycle_min_earnings_usd < 0:
            raise ConfigurationError("fee_reserve_eth, min_gas_eth and recycle_min_earnings_usd must not be negative")

        if self.probe_timeout <= 0 or self.confirmation_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive")

        if self.connect_attempts < 1:
            raise ConfigurationError("connect_attempts must be at least 1")

        if self.connect_backoff < 0 or self.receipt_poll_interval < 0:
            raise ConfigurationError("connect_backoff and receipt_poll_interval must not be negative")

        logger.info("Configuration validated successfully")
