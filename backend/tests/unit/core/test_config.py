"""Tests for settings validation."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from reflection_coach.core.config import Settings


class TestSecretValidation:
    """Required secrets are only enforced in production."""

    def test_missing_api_key_tolerated_in_development(self):
        """Stores work offline; the remote endpoints report the missing key instead."""
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings(_env_file=None)
            assert settings.openai_api_key == ""
            assert settings.openai_configured is False

    def test_missing_api_key_rejected_in_production(self):
        env = {
            "ENVIRONMENT": "production",
            "OPENAI_API_KEY": "",
            "CORS_ORIGINS": '["https://journal.example.org"]',
        }
        with patch.dict("os.environ", env, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)

            assert "OPENAI_API_KEY" in str(exc_info.value)

    def test_whitespace_api_key_counts_as_missing(self):
        env = {
            "ENVIRONMENT": "production",
            "OPENAI_API_KEY": "   ",
            "CORS_ORIGINS": '["https://journal.example.org"]',
        }
        with patch.dict("os.environ", env, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

    def test_api_key_present_in_production_succeeds(self):
        env = {
            "ENVIRONMENT": "production",
            "OPENAI_API_KEY": "sk-test",
            "CORS_ORIGINS": '["https://journal.example.org"]',
        }
        with patch.dict("os.environ", env, clear=True):
            settings = Settings(_env_file=None)
            assert settings.openai_configured is True


class TestDefaults:
    """Defaults match the documented remote and storage behaviour."""

    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            settings = Settings(_env_file=None)
            assert settings.environment == "development"
            assert settings.api_prefix == "/api/v1"
            assert settings.functions_prefix == "/api"
            assert settings.openai_model == "gpt-5"
            assert settings.openai_timeout_seconds == 30.0
            assert settings.context_transition_delay_seconds == 0.15
            assert settings.rate_limit_storage_uri == "memory://"

    def test_timeout_must_be_bounded(self):
        with patch.dict("os.environ", {"OPENAI_TIMEOUT_SECONDS": "0"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)

        with patch.dict("os.environ", {"OPENAI_TIMEOUT_SECONDS": "600"}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)


class TestCorsValidation:
    """Test CORS origin validation in production."""

    def test_cors_allows_localhost_in_development(self):
        env = {"CORS_ORIGINS": '["http://localhost:3000"]'}
        with patch.dict("os.environ", env, clear=True):
            settings = Settings(_env_file=None)
            assert "http://localhost:3000" in settings.cors_origins

    def test_cors_rejects_localhost_in_production(self):
        env = {
            "ENVIRONMENT": "production",
            "OPENAI_API_KEY": "sk-test",
            "CORS_ORIGINS": '["http://localhost:3000"]',
        }
        with patch.dict("os.environ", env, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)
            assert "localhost" in str(exc_info.value).lower()

    def test_cors_rejects_wildcard_in_production(self):
        env = {
            "ENVIRONMENT": "production",
            "OPENAI_API_KEY": "sk-test",
            "CORS_ORIGINS": '["*"]',
        }
        with patch.dict("os.environ", env, clear=True):
            with pytest.raises(ValidationError) as exc_info:
                Settings(_env_file=None)
            assert "wildcard" in str(exc_info.value).lower()
