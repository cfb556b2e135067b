# =============================================================================
# core/config.py  —  Settings loaded from the environment
# =============================================================================
#
# All configuration comes from environment variables.  main.py calls
# python-dotenv's load_dotenv() first, so a local .env file works too.
#
#   CLICKUP_API_TOKEN                 (required) personal API token
#   CLICKUP_API_BASE_URL              REST base URL
#   CLICKUP_REQUEST_TIMEOUT           seconds per outbound call
#   CLICKUP_DOWNLOAD_DIR              default output_dir for attachments
#   CLICKUP_MAX_CONCURRENT_DOWNLOADS  cap on parallel attachment downloads
#   CLICKUP_LOG_LEVEL                 logging level name
#
# A missing token is the only configuration problem that stops the process.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "https://api.clickup.com/api/v2"
DEFAULT_DOWNLOAD_DIR = "./downloads"


class ConfigError(RuntimeError):
    """Required startup configuration is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    api_token: str
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 30.0
    download_dir: str = DEFAULT_DOWNLOAD_DIR
    max_concurrent_downloads: int = 4
    log_level: str = "INFO"


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read Settings from `environ` (defaults to os.environ).

    Raises:
        ConfigError: if CLICKUP_API_TOKEN is unset or a numeric value is invalid.
    """
    env = os.environ if environ is None else environ

    token = env.get("CLICKUP_API_TOKEN", "").strip()
    if not token:
        raise ConfigError("ClickUp API token is required (set CLICKUP_API_TOKEN)")

    return Settings(
        api_token=token,
        base_url=env.get("CLICKUP_API_BASE_URL", "").strip() or DEFAULT_BASE_URL,
        request_timeout=_number(env, "CLICKUP_REQUEST_TIMEOUT", 30.0, float),
        download_dir=env.get("CLICKUP_DOWNLOAD_DIR", "").strip() or DEFAULT_DOWNLOAD_DIR,
        max_concurrent_downloads=_number(env, "CLICKUP_MAX_CONCURRENT_DOWNLOADS", 4, int),
        log_level=env.get("CLICKUP_LOG_LEVEL", "").strip().upper() or "INFO",
    )
