#!/usr/bin/env python3
"""
Interface of the query-execution model the collector drives.

Any object with Mongoose/Motor-like chainable queries fits: find() and
count_documents() are required, aggregate() and distinct() are optional and
checked for on every call rather than at construction time.
"""

from typing import Any, Awaitable, Dict, List, Protocol, TypeVar, runtime_checkable

from ..filters.base import FilterableParameters, SortableParameters


T_co = TypeVar('T_co', covariant=True)


class Countable(Protocol):
    """Count query returned by count_documents()."""

    def limit(self, limit: int) -> 'Countable': ...

    async def exec(self) -> int: ...


class Queryable(Protocol[T_co]):
    """Chainable find query."""

    def skip(self, offset: int) -> 'Queryable[T_co]': ...

    def limit(self, limit: int) -> 'Queryable[T_co]': ...

    def sort(self, spec: SortableParameters) -> 'Queryable[T_co]': ...

    def populate(self, relations: Any) -> 'Queryable[T_co]': ...

    def select(self, projection: Any) -> 'Queryable[T_co]': ...

    def lean(self) -> 'Queryable[T_co]': ...

    async def exec(self) -> List[T_co]: ...


class AggregateExecutor(Protocol):
    async def exec(self) -> List[Dict[str, Any]]: ...


class QueryModel(Protocol):
    """Mandatory capability set."""

    def count_documents(self, filter: FilterableParameters) -> Countable: ...

    def find(self, filter: FilterableParameters) -> Queryable[Any]: ...


@runtime_checkable
class AggregateCapable(Protocol):
    def aggregate(self, pipeline: List[Dict[str, Any]]) -> AggregateExecutor: ...


@runtime_checkable
class DistinctCapable(Protocol):
    def distinct(self, field: str, filter: FilterableParameters) -> Awaitable[List[Any]]: ...
