"""Tests for configuration and environment variable helpers."""

import logging

import pytest

from chainview.helpers.config import (
    Settings,
    get_float_env,
    get_int_env,
    get_optional_env,
    load_settings,
)
from chainview.helpers.constants import (
    COINGECKO_API_URL,
    DEFAULT_CHAIN_ID,
    ETHERSCAN_API_URL,
)


SETTINGS_ENV = (
    "ETHERSCAN_API_URL",
    "ETHERSCAN_API_KEY",
    "ETHERSCAN_CHAIN_ID",
    "COINGECKO_API_URL",
    "COINGECKO_API_KEY",
    "API_RATE_LIMIT_DELAY_MS",
    "API_INITIAL_DELAY_MS",
    "API_MAX_RETRIES",
    "API_REQUEST_TIMEOUT",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every settings variable for the duration of a test."""
    for key in (*SETTINGS_ENV, "TEST_KEY"):
        monkeypatch.delenv(key, raising=False)


@pytest.mark.usefixtures("clean_env")
class TestEnvHelpers:
    """Tests for the environment variable getters."""

    def test_optional_env_default(self) -> None:
        """Test that get_optional_env falls back to the default."""
        assert get_optional_env("TEST_KEY") is None
        assert get_optional_env("TEST_KEY", "fallback") == "fallback"

    def test_int_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test integer parsing with surrounding whitespace."""
        monkeypatch.setenv("TEST_KEY", " 250 ")
        assert get_int_env("TEST_KEY", 400) == 250

    def test_int_env_default_when_unset(self) -> None:
        """Test unset integer variables use the default."""
        assert get_int_env("TEST_KEY", 400) == 400

    def test_int_env_invalid(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test non-integer values raise with the variable name."""
        monkeypatch.setenv("TEST_KEY", "fast")
        with pytest.raises(ValueError, match="TEST_KEY must be an integer"):
            get_int_env("TEST_KEY", 400)

    def test_float_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test float parsing."""
        monkeypatch.setenv("TEST_KEY", "2.5")
        assert get_float_env("TEST_KEY", 10.0) == 2.5

    def test_float_env_invalid(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test non-numeric values raise with the variable name."""
        monkeypatch.setenv("TEST_KEY", "ten")
        with pytest.raises(ValueError, match="TEST_KEY must be a number"):
            get_float_env("TEST_KEY", 10.0)


@pytest.mark.usefixtures("clean_env")
class TestLoadSettings:
    """Tests for load_settings function."""

    def test_defaults(self) -> None:
        """Test that zero configuration yields public defaults."""
        settings = load_settings()

        assert settings.etherscan_api_url == ETHERSCAN_API_URL
        assert settings.etherscan_api_key == ""
        assert settings.chain_id == DEFAULT_CHAIN_ID
        assert settings.coingecko_api_url == COINGECKO_API_URL
        assert settings.rate_limit_delay_ms == 400
        assert settings.initial_delay_ms == 100
        assert settings.max_retries == 3
        assert settings.request_timeout == 10.0

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test every variable is picked up."""
        monkeypatch.setenv("ETHERSCAN_API_KEY", "abc")
        monkeypatch.setenv("ETHERSCAN_CHAIN_ID", "11155111")
        monkeypatch.setenv("COINGECKO_API_KEY", "cg")
        monkeypatch.setenv("API_RATE_LIMIT_DELAY_MS", "250")
        monkeypatch.setenv("API_INITIAL_DELAY_MS", "0")
        monkeypatch.setenv("API_MAX_RETRIES", "5")
        monkeypatch.setenv("API_REQUEST_TIMEOUT", "3.5")

        settings = load_settings()

        assert settings.etherscan_api_key == "abc"
        assert settings.chain_id == "11155111"
        assert settings.coingecko_api_key == "cg"
        assert settings.rate_limit_delay_ms == 250
        assert settings.initial_delay_ms == 0
        assert settings.max_retries == 5
        assert settings.request_timeout == 3.5

    def test_warns_without_etherscan_key(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test a missing Etherscan key is logged as a warning."""
        logging.getLogger("chainview.helpers.config").propagate = True
        with caplog.at_level(logging.WARNING, logger="chainview.helpers.config"):
            load_settings()

        assert "ETHERSCAN_API_KEY is not set" in caplog.text

    def test_negative_values_rejected(self) -> None:
        """Test settings validation rejects negative pacing."""
        with pytest.raises(ValueError, match="greater than or equal to 0"):
            Settings(max_retries=-1)

    def test_settings_are_frozen(self) -> None:
        """Test settings cannot be mutated after construction."""
        settings = Settings()
        with pytest.raises(ValueError, match="frozen"):
            settings.max_retries = 10  # type: ignore[misc]
