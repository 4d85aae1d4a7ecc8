"""
bitsavetx/config.py

Configuration constants and data classes for bitsavetx.

Settings can be overridden through environment variables:
    BITSAVE_NETWORK            testnet | mainnet
    BITSAVE_API_URL            Stacks API base URL
    BITSAVE_CONTRACT           <address>.<name> of the savings contract
    BITSAVE_REQUEST_TIMEOUT    HTTP timeout in seconds
    BITSAVE_POLL_INTERVAL      seconds between status reads
    BITSAVE_MAX_POLL_ATTEMPTS  reads before a transaction times out
    BITSAVE_MAX_WAIT_SECONDS   optional wall-clock ceiling for polling
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional
import math
import os
import logging

logger = logging.getLogger("bitsavetx.config")


# Networks
STACKS_TESTNET = "testnet"
STACKS_MAINNET = "mainnet"
DEFAULT_NETWORK = STACKS_TESTNET

API_URLS = {
    STACKS_TESTNET: "https://api.testnet.hiro.so",
    STACKS_MAINNET: "https://api.hiro.so",
}

EXPLORER_URL = "https://explorer.hiro.so"

# Deployed BitSave contracts
CONTRACT_ADDRESS = "ST2QR5BT57BTVQM69ZFQBMW3BH7KDN3FX56H02TEW"
BITSAVE_CONTRACT_NAME = "bitsave-v2"

# Ledger time (blocks)
BLOCKS_PER_DAY = 144
BLOCKS_PER_WEEK = 1008
BLOCKS_PER_MONTH = 4320
BLOCKS_PER_YEAR = 52560

# Amounts (micro-STX)
MICRO_STX_PER_STX = 1_000_000
MIN_DEPOSIT = 1_000_000             # 1 STX
MAX_DEPOSIT = 100_000_000_000       # 100,000 STX
MAX_AMOUNT = 1_000_000_000_000      # 1,000,000 STX, generic amount ceiling

# Lock periods (blocks)
MIN_LOCK_PERIOD = BLOCKS_PER_DAY
MAX_LOCK_PERIOD = 365 * BLOCKS_PER_DAY

# Contract defaults
DEFAULT_REWARD_RATE = 10            # percent
DEFAULT_PENALTY_RATE = 20           # percent

# Confirmation polling
POLL_INTERVAL_SECONDS = 5.0
MAX_POLL_ATTEMPTS = 60              # 60 x 5s = 5 minutes
REQUEST_TIMEOUT_SECONDS = 30.0


def _env_float(
    name: str,
    default: Optional[float],
    minimum: float = 0.0,
    strict: bool = False,
) -> Optional[float]:
    """Read a finite float >= minimum (> minimum when strict)."""
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        number = float(value)
    except ValueError:
        logger.warning(f"Invalid {name}={value!r}, using {default}")
        return default
    if not math.isfinite(number) or number < minimum or (strict and number == minimum):
        logger.warning(f"Out of range {name}={value!r}, using {default}")
        return default
    return number


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        number = int(value)
    except ValueError:
        logger.warning(f"Invalid {name}={value!r}, using {default}")
        return default
    if number < minimum:
        logger.warning(f"Out of range {name}={value!r}, using {default}")
        return default
    return number


@dataclass
class TrackerConfig:
    """Polling parameters for a TransactionTracker."""
    poll_interval: float = POLL_INTERVAL_SECONDS
    max_attempts: int = MAX_POLL_ATTEMPTS
    max_wait_seconds: Optional[float] = None  # None = attempt count only

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.poll_interval < 0:
            raise ValueError("poll_interval cannot be negative")
        if self.max_wait_seconds is not None and self.max_wait_seconds <= 0:
            raise ValueError("max_wait_seconds must be positive")

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        """Build a config from BITSAVE_* environment variables."""
        return cls(
            poll_interval=_env_float("BITSAVE_POLL_INTERVAL", POLL_INTERVAL_SECONDS),
            max_attempts=_env_int("BITSAVE_MAX_POLL_ATTEMPTS", MAX_POLL_ATTEMPTS),
            max_wait_seconds=_env_float("BITSAVE_MAX_WAIT_SECONDS", None, strict=True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class NetworkConfig:
    """Where the ledger lives and how to reach it."""
    network: str = DEFAULT_NETWORK
    api_url: str = API_URLS[DEFAULT_NETWORK]
    contract_address: str = CONTRACT_ADDRESS
    contract_name: str = BITSAVE_CONTRACT_NAME
    request_timeout: float = REQUEST_TIMEOUT_SECONDS

    @property
    def contract_id(self) -> str:
        return f"{self.contract_address}.{self.contract_name}"

    @classmethod
    def for_network(cls, network: str) -> "NetworkConfig":
        """Defaults for a named network (testnet or mainnet)."""
        normalized = network.lower().strip()
        if normalized not in API_URLS:
            raise ValueError(
                f"Invalid network: {network}. "
                f"Valid options: {', '.join(API_URLS)}"
            )
        return cls(network=normalized, api_url=API_URLS[normalized])

    @classmethod
    def from_env(cls) -> "NetworkConfig":
        """
        Build a config from BITSAVE_* environment variables.

        BITSAVE_NETWORK selects the defaults; BITSAVE_API_URL and
        BITSAVE_CONTRACT override them individually.
        """
        config = cls()

        env_network = os.environ.get("BITSAVE_NETWORK")
        if env_network:
            try:
                config = cls.for_network(env_network)
            except ValueError as e:
                logger.warning(f"Invalid BITSAVE_NETWORK: {e}")

        env_api = os.environ.get("BITSAVE_API_URL")
        if env_api:
            config.api_url = env_api.rstrip("/")

        env_contract = os.environ.get("BITSAVE_CONTRACT")
        if env_contract:
            if "." in env_contract:
                address, name = env_contract.split(".", 1)
                config.contract_address = address
                config.contract_name = name
            else:
                logger.warning(
                    f"Invalid BITSAVE_CONTRACT={env_contract!r}, "
                    f"expected <address>.<name>"
                )

        config.request_timeout = _env_float(
            "BITSAVE_REQUEST_TIMEOUT", config.request_timeout, strict=True
        )
        return config

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["contract_id"] = self.contract_id
        return data
