"""
Scoped query collection over an external execution model.
"""

from .capabilities import (
    AggregateCapable,
    AggregateExecutor,
    Countable,
    DistinctCapable,
    Queryable,
    QueryModel,
)
from .collector import DocumentCollector

__all__ = [
    'DocumentCollector',
    'QueryModel',
    'Queryable',
    'Countable',
    'AggregateExecutor',
    'AggregateCapable',
    'DistinctCapable',
]
