"""
MongoDB-style filter validation for untrusted callers.

Callers send filters against public property names; the parser checks them
against an entity's exposure registry and a fixed operator allow-list, and
returns a canonical filter safe to hand to the query engine.

Example usage:
    from docquery.filters import FilterParser, PropertyRegistry

    registry = (PropertyRegistry.builder('files')
                .expose('name')
                .expose('created_at', type='date')
                .expose('typeName', name='type_name')
                .build())

    parser = FilterParser(registry)
    canonical = parser.parse({
        "$or": [
            {"typeName": {"$regex": "^image/"}},
            {"created_at": {"$gte": "2019-01-01"}}
        ]
    })
"""

from .base import (
    FilterOperator,
    FilterableParameters,
    SortableParameters,
    OPERATOR_SIGIL,
)
from .registry import (
    ValueType,
    PropertyDescriptor,
    PropertyRegistry,
    RegistryBuilder,
    load_registries,
)
from .validator import FilterSchemaValidator
from .parser import FilterParser

__all__ = [
    # Vocabulary
    'FilterOperator',
    'FilterableParameters',
    'SortableParameters',
    'OPERATOR_SIGIL',

    # Registry
    'ValueType',
    'PropertyDescriptor',
    'PropertyRegistry',
    'RegistryBuilder',
    'load_registries',

    # Validation
    'FilterSchemaValidator',
    'FilterParser',
]
