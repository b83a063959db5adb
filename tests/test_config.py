#!/usr/bin/env python3
"""
Tests for environment-based configuration.
"""

import pytest

from docquery.config import Config
from docquery.exceptions import ValidationError


ENV_VARS = [
    "DOCQUERY_IDENTITY_FIELD",
    "DOCQUERY_MAX_FILTER_DEPTH",
    "DOCQUERY_DEFAULT_PAGE_LIMIT",
    "DOCQUERY_REGISTRY_PATH",
    "DOCQUERY_LOG_DIR",
    "DOCQUERY_DEBUG",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfig:
    """Config.from_env()"""

    def test_defaults(self, clean_env):
        assert Config.from_env() == Config.defaults()

    def test_overrides(self, clean_env):
        clean_env.setenv("DOCQUERY_IDENTITY_FIELD", "uuid")
        clean_env.setenv("DOCQUERY_MAX_FILTER_DEPTH", "4")
        clean_env.setenv("DOCQUERY_DEFAULT_PAGE_LIMIT", "25")
        clean_env.setenv("DOCQUERY_REGISTRY_PATH", "/etc/docquery/registry.yaml")
        clean_env.setenv("DOCQUERY_DEBUG", "true")

        config = Config.from_env()

        assert config["identity_field"] == "uuid"
        assert config["max_filter_depth"] == 4
        assert config["default_page_limit"] == 25
        assert config["registry_path"] == "/etc/docquery/registry.yaml"
        assert config["debug"] is True

    def test_debug_off_values(self, clean_env):
        clean_env.setenv("DOCQUERY_DEBUG", "0")
        assert Config.from_env()["debug"] is False

    @pytest.mark.parametrize("value", ["ten", "0", "-3"])
    def test_invalid_depth(self, clean_env, value):
        clean_env.setenv("DOCQUERY_MAX_FILTER_DEPTH", value)
        with pytest.raises(ValidationError):
            Config.from_env()
