"""
Runtime settings for Adventurers Guild.

Values come from environment variables, with a local .env file loaded first
for development. Settings are passed explicitly to the functions that need
them instead of being read from a global.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from guild.errors import InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "http://localhost:3000/api"
DEFAULT_REQUEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class Settings:
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    datadog_api_key: str | None = None


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        raise InvalidArgument(f"GUILD_REQUEST_TIMEOUT must be a number (got {raw!r})") from None

    if timeout <= 0:
        raise InvalidArgument(f"GUILD_REQUEST_TIMEOUT must be positive (got {raw!r})")
    return timeout


def load_settings(environ=None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: Mapping to read from (default: os.environ after loading .env)

    Returns:
        Settings with defaults applied for unset variables

    Raises:
        InvalidArgument: If GUILD_REQUEST_TIMEOUT is not a positive number

    Example:
        >>> load_settings({"GUILD_API_BASE_URL": "https://guild.example/api/"}).api_base_url
        'https://guild.example/api'
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    base_url = environ.get("GUILD_API_BASE_URL") or DEFAULT_API_BASE_URL
    raw_timeout = environ.get("GUILD_REQUEST_TIMEOUT")
    timeout = _parse_timeout(raw_timeout) if raw_timeout else DEFAULT_REQUEST_TIMEOUT

    settings = Settings(
        api_base_url=base_url.rstrip("/"),
        request_timeout=timeout,
        datadog_api_key=environ.get("DATADOG_API_KEY") or None
    )
    logger.debug(f"Loaded settings for API at {settings.api_base_url}")
    return settings
