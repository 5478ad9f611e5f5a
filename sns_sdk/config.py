import os
from dataclasses import dataclass
from typing import Optional, Union

from dotenv import load_dotenv

from sns_sdk.errors import ConfigurationError

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"


@dataclass
class SnsConfig:
    """Connection and resolution settings."""

    rpc_url: str = DEFAULT_RPC_URL
    commitment: str = "confirmed"
    # seconds
    timeout: float = 10
    max_workers: Optional[int] = None
    allow_pda: Union[str, bool] = False


def _parse_allow_pda(value: str) -> Union[str, bool]:
    lowered = value.strip().lower()
    if lowered == "any":
        return "any"
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ConfigurationError(f"SNS_ALLOW_PDA must be any, true or false, got {value!r}")


def _parse_number(name: str, value: str, kind):
    try:
        return kind(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}", {"name": name}) from exc


def load_config(env_file: Optional[str] = None) -> SnsConfig:
    """Build an SnsConfig from the environment, reading a .env file first."""
    load_dotenv(env_file)
    config = SnsConfig()

    if os.getenv("SNS_RPC_URL"):
        config.rpc_url = os.getenv("SNS_RPC_URL")
    if os.getenv("SNS_COMMITMENT"):
        config.commitment = os.getenv("SNS_COMMITMENT")
    if os.getenv("SNS_RPC_TIMEOUT"):
        config.timeout = _parse_number("SNS_RPC_TIMEOUT", os.getenv("SNS_RPC_TIMEOUT"), float)
    if os.getenv("SNS_MAX_WORKERS"):
        config.max_workers = _parse_number("SNS_MAX_WORKERS", os.getenv("SNS_MAX_WORKERS"), int)
    if os.getenv("SNS_ALLOW_PDA"):
        config.allow_pda = _parse_allow_pda(os.getenv("SNS_ALLOW_PDA"))
    return config
