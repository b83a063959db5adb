"""
docquery
Restricted MongoDB-style query language for untrusted callers: filter
validation against per-entity exposure tables plus scoped, paginated queries.
"""

from .config import Config
from .exceptions import (
    DocQueryError,
    QueryError,
    ValidationError,
    RegistryError,
    FilterValidationError,
    UnknownPropertyError,
    DisallowedOperatorError,
    SchemaViolationError,
    CapabilityUnsupportedError,
)
from .filters import (
    FilterParser,
    FilterSchemaValidator,
    PropertyDescriptor,
    PropertyRegistry,
    ValueType,
    load_registries,
)
from .models import (
    CollectionQuery,
    CollectionResponse,
    CountQuery,
    FindOptions,
    Pagination,
    PopulateOptions,
)
from .executor import DocumentCollector

__version__ = "1.0.0"

__all__ = [
    "Config",
    "DocumentCollector",
    "FilterParser",
    "FilterSchemaValidator",
    "PropertyDescriptor",
    "PropertyRegistry",
    "ValueType",
    "load_registries",
    "CollectionQuery",
    "CollectionResponse",
    "CountQuery",
    "FindOptions",
    "Pagination",
    "PopulateOptions",
    "DocQueryError",
    "QueryError",
    "ValidationError",
    "RegistryError",
    "FilterValidationError",
    "UnknownPropertyError",
    "DisallowedOperatorError",
    "SchemaViolationError",
    "CapabilityUnsupportedError",
]
