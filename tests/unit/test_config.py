"""Unit tests for settings defaults and production checks."""

import pytest
from pydantic import ValidationError

from merit.config import PLACEHOLDER_JWT_SECRET, Settings


class TestSettings:
    def test_dev_login_off_by_default(self, monkeypatch):
        monkeypatch.delenv("MERIT_DEV_LOGIN_ENABLED", raising=False)
        assert Settings(_env_file=None).dev_login_enabled is False

    def test_placeholder_secret_rejected_in_production(self):
        with pytest.raises(ValidationError, match="MERIT_JWT_SECRET_KEY"):
            Settings(_env_file=None, environment="production", jwt_secret_key=PLACEHOLDER_JWT_SECRET)

    def test_placeholder_secret_allowed_in_development(self):
        settings = Settings(_env_file=None, environment="development", jwt_secret_key=PLACEHOLDER_JWT_SECRET)
        assert settings.is_production is False

    def test_production_with_real_secret(self):
        settings = Settings(_env_file=None, environment="Production", jwt_secret_key="a-real-secret")
        assert settings.is_production is True
