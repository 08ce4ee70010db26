"""Tests for settings validation."""

import pytest

from tastebuddy.config import Settings


def test_defaults():
    """Test that the defaults describe a local development setup."""
    settings = Settings(_env_file=None)
    assert settings.is_development
    assert settings.discount_fetch_concurrency >= 1
    assert "Konstanz" in settings.discount_cities


def test_production_rejects_localhost_database():
    """Test that production refuses a local database URL."""
    with pytest.raises(ValueError, match="localhost"):
        Settings(_env_file=None, environment="production", database_url="postgresql://u:p@localhost/db")


def test_concurrency_must_be_positive():
    """Test that the market fetch concurrency cannot be zero."""
    with pytest.raises(ValueError, match="CONCURRENCY"):
        Settings(_env_file=None, discount_fetch_concurrency=0)
