# tests/test_config.py

from __future__ import annotations

import pytest

from core.config import DEFAULT_BASE_URL, ConfigError, load_settings


def test_missing_token_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        load_settings({})
    with pytest.raises(ConfigError):
        load_settings({"CLICKUP_API_TOKEN": "   "})


def test_defaults_apply_when_only_token_is_set() -> None:
    settings = load_settings({"CLICKUP_API_TOKEN": "pk_abc"})

    assert settings.api_token == "pk_abc"
    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.request_timeout == 30.0
    assert settings.download_dir == "./downloads"
    assert settings.max_concurrent_downloads == 4
    assert settings.log_level == "INFO"


def test_overrides_are_parsed() -> None:
    settings = load_settings({
        "CLICKUP_API_TOKEN": "pk_abc",
        "CLICKUP_REQUEST_TIMEOUT": "2.5",
        "CLICKUP_MAX_CONCURRENT_DOWNLOADS": "8",
        "CLICKUP_DOWNLOAD_DIR": "/tmp/clickup",
        "CLICKUP_LOG_LEVEL": "debug",
    })

    assert settings.request_timeout == 2.5
    assert settings.max_concurrent_downloads == 8
    assert settings.download_dir == "/tmp/clickup"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["fast", "0", "-3"])
def test_bad_numbers_are_rejected(value: str) -> None:
    with pytest.raises(ConfigError):
        load_settings({"CLICKUP_API_TOKEN": "pk_abc", "CLICKUP_MAX_CONCURRENT_DOWNLOADS": value})
