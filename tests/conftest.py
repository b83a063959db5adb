"""
Shared pytest fixtures for docquery tests.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Keep test logs out of the home directory; must happen before docquery is imported
os.environ.setdefault("DOCQUERY_LOG_DIR", tempfile.mkdtemp(prefix="docquery-logs-"))

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from docquery.filters import FilterParser, PropertyRegistry


@pytest.fixture
def user_registry():
    """Registry of a user-like entity with an alias, a date and a hidden field."""
    return (PropertyRegistry.builder("users", identity_field="id")
            .expose("name")
            .expose("id")
            .expose("created_at", type="date")
            .expose("typeName", name="type_name")
            .expose("tags")
            .expose("items")
            .expose("status")
            .expose("unfilterable", filterable=False)
            .build())


@pytest.fixture
def parser(user_registry):
    """FilterParser bound to the user registry."""
    return FilterParser(user_registry)
