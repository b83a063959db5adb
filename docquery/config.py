"""
Configuration helpers for docquery.
Supports environment variables for easy deployment configuration.
"""

import os
from typing import Any, Dict, Optional

from .exceptions import ValidationError


DEFAULT_IDENTITY_FIELD = "_id"
DEFAULT_MAX_FILTER_DEPTH = 10
DEFAULT_PAGE_LIMIT = 10


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ValidationError(f"{name} must be at least 1, got {value}")
    return value


class Config:
    """
    Configuration helper that reads from environment variables.

    Environment variables:
        DOCQUERY_IDENTITY_FIELD: Unique field used as sort tie-breaker (default: _id)
        DOCQUERY_MAX_FILTER_DEPTH: Maximum filter nesting depth (default: 10)
        DOCQUERY_DEFAULT_PAGE_LIMIT: Page size when the caller sends none (default: 10)
        DOCQUERY_REGISTRY_PATH: YAML file with property exposure declarations
        DOCQUERY_LOG_DIR: Log directory (default: ~/.docquery/logs)
        DOCQUERY_DEBUG: Enable debug logging (1/true/yes)
    """

    @staticmethod
    def defaults() -> Dict[str, Any]:
        """
        Configuration without consulting the environment.

        Returns:
            Dict with every configuration key at its default value
        """
        return {
            "identity_field": DEFAULT_IDENTITY_FIELD,
            "max_filter_depth": DEFAULT_MAX_FILTER_DEPTH,
            "default_page_limit": DEFAULT_PAGE_LIMIT,
            "registry_path": None,
            "log_dir": None,
            "debug": False,
        }

    @staticmethod
    def from_env() -> Dict[str, Any]:
        """
        Create configuration from environment variables.

        Returns:
            Dict with configuration parameters

        Raises:
            ValidationError: If a numeric setting is not a positive integer

        Example:
            from docquery import Config, DocumentCollector, FilterParser, load_registries

            config = Config.from_env()
            registries = load_registries(config["registry_path"])
            parser = FilterParser(registries["files"], max_depth=config["max_filter_depth"])
        """
        config = Config.defaults()
        config.update({
            "identity_field": os.getenv("DOCQUERY_IDENTITY_FIELD") or DEFAULT_IDENTITY_FIELD,
            "max_filter_depth": _int_from_env("DOCQUERY_MAX_FILTER_DEPTH", DEFAULT_MAX_FILTER_DEPTH),
            "default_page_limit": _int_from_env("DOCQUERY_DEFAULT_PAGE_LIMIT", DEFAULT_PAGE_LIMIT),
            "debug": os.getenv("DOCQUERY_DEBUG", "").lower() in ("1", "true", "yes"),
        })

        registry_path: Optional[str] = os.getenv("DOCQUERY_REGISTRY_PATH")
        if registry_path:
            config["registry_path"] = os.path.expanduser(registry_path)

        log_dir = os.getenv("DOCQUERY_LOG_DIR")
        if log_dir:
            config["log_dir"] = os.path.expanduser(log_dir)

        return config
