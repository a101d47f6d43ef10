"""Configuration management and environment variable utilities."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from chainview.helpers.constants import (
    COINGECKO_API_URL,
    DEFAULT_CHAIN_ID,
    DEFAULT_TIMEOUT,
    ETHERSCAN_API_URL,
    INITIAL_DELAY_MS,
    MAX_RETRIES,
    RATE_LIMIT_DELAY_MS,
)
from chainview.helpers.logging import get_logger


# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_int_env(key: str, default: int) -> int:
    """Get an integer environment variable.

    Args:
        key: Environment variable name
        default: Value used when the variable is unset or empty

    Returns:
        Parsed integer value

    Raises:
        ValueError: If the variable is set but is not an integer
    """
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        msg = f"{key} must be an integer, got {raw!r}"
        raise ValueError(msg) from None


def get_float_env(key: str, default: float) -> float:
    """Get a float environment variable.

    Args:
        key: Environment variable name
        default: Value used when the variable is unset or empty

    Returns:
        Parsed float value

    Raises:
        ValueError: If the variable is set but is not a number
    """
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        msg = f"{key} must be a number, got {raw!r}"
        raise ValueError(msg) from None


class Settings(BaseModel):
    """Provider endpoints, credentials and pacing for the API clients."""

    model_config = ConfigDict(frozen=True)

    etherscan_api_url: str = ETHERSCAN_API_URL
    etherscan_api_key: str = ""
    chain_id: str = DEFAULT_CHAIN_ID
    coingecko_api_url: str = COINGECKO_API_URL
    coingecko_api_key: str = ""
    rate_limit_delay_ms: int = Field(default=RATE_LIMIT_DELAY_MS, ge=0)
    initial_delay_ms: int = Field(default=INITIAL_DELAY_MS, ge=0)
    max_retries: int = Field(default=MAX_RETRIES, ge=0)
    request_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)


def load_settings() -> Settings:
    """Build settings from the environment, falling back to public defaults.

    Every value has a default so the client runs without any configuration,
    using the providers' public rate limits.

    Returns:
        Settings instance

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    settings = Settings(
        etherscan_api_url=get_optional_env("ETHERSCAN_API_URL") or ETHERSCAN_API_URL,
        etherscan_api_key=get_optional_env("ETHERSCAN_API_KEY", "") or "",
        chain_id=get_optional_env("ETHERSCAN_CHAIN_ID") or DEFAULT_CHAIN_ID,
        coingecko_api_url=get_optional_env("COINGECKO_API_URL") or COINGECKO_API_URL,
        coingecko_api_key=get_optional_env("COINGECKO_API_KEY", "") or "",
        rate_limit_delay_ms=get_int_env("API_RATE_LIMIT_DELAY_MS", RATE_LIMIT_DELAY_MS),
        initial_delay_ms=get_int_env("API_INITIAL_DELAY_MS", INITIAL_DELAY_MS),
        max_retries=get_int_env("API_MAX_RETRIES", MAX_RETRIES),
        request_timeout=get_float_env("API_REQUEST_TIMEOUT", DEFAULT_TIMEOUT),
    )

    if not settings.etherscan_api_key:
        logger.warning(
            "ETHERSCAN_API_KEY is not set, requests will use the public rate limit"
        )

    return settings


__all__ = [
    "Settings",
    "get_float_env",
    "get_int_env",
    "get_optional_env",
    "load_settings",
]
