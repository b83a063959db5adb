#!/usr/bin/env python3
"""
Filter parser for caller-supplied MongoDB-style filters.

Walks the raw tree, rejects operators outside the allow-list and properties
the entity does not expose, renames public aliases to storage names, coerces
date values, and finally checks the result against the grammar. The input
tree is never modified; a new canonical tree is built instead.
"""

from dataclasses import replace
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..config import DEFAULT_MAX_FILTER_DEPTH
from ..exceptions import (
    DisallowedOperatorError, FilterValidationError, SchemaViolationError, UnknownPropertyError
)
from ..log_manager import get_logger
from ..utils.time_utils import to_datetime
from .base import (
    NON_VALUE_OPERATORS, FilterableParameters, FilterOperator, SortableParameters, is_operator
)
from .registry import PropertyDescriptor, PropertyRegistry
from .validator import FilterSchemaValidator, join_path

if TYPE_CHECKING:
    from ..models import CollectionQuery


class FilterParser:
    """
    Turns an untrusted filter into a canonical one for a single entity type.

    Example:
        parser = FilterParser(registry)
        parser.parse({"typeName": {"$regex": "^image/"}})
        # -> {"type_name": {"$regex": "^image/"}}
    """

    def __init__(self,
                 registry: PropertyRegistry,
                 validator: Optional[FilterSchemaValidator] = None,
                 max_depth: int = DEFAULT_MAX_FILTER_DEPTH):
        """
        Initialize the parser.

        Args:
            registry: Exposure table of the target entity
            validator: Grammar validator (default: FilterSchemaValidator())
            max_depth: Maximum nesting of mappings and arrays to prevent DoS attacks
        """
        self.registry = registry
        self.validator = validator or FilterSchemaValidator()
        self.max_depth = max_depth
        self.logger = get_logger('FilterParser', component='filters')

    def parse(self, raw_filter: Optional[FilterableParameters]) -> FilterableParameters:
        """
        Validate and canonicalize a filter.

        Args:
            raw_filter: Decoded filter dictionary, or None

        Returns:
            New canonical filter dictionary ({} matches everything)

        Raises:
            UnknownPropertyError: Property missing or not filterable
            DisallowedOperatorError: Operator outside the allow-list
            SchemaViolationError: Tree does not match the grammar
        """
        if raw_filter is None:
            return {}

        try:
            if not isinstance(raw_filter, dict):
                raise SchemaViolationError(
                    f"Filter must be an object, got {type(raw_filter).__name__}"
                )

            transformed = self._transform(raw_filter, depth=0, path="")
            if not transformed:
                return {}

            self.validator.validate(transformed)
        except FilterValidationError as e:
            self.logger.warning(f"Rejected {self.registry.entity} filter: {e}")
            raise

        return transformed

    def parse_sort(self, sort: Optional[str]) -> Optional[SortableParameters]:
        """
        Parse a sort string into a canonical sort specification.

        Args:
            sort: Fields separated by ';', prefixed with '-' for descending,
                e.g. "-created_at;filename"

        Returns:
            Dict of canonical field -> 'asc' | 'desc', or None if empty

        Raises:
            UnknownPropertyError: If a field is not exposed
        """
        if not sort:
            return None

        sorter: SortableParameters = {}
        for segment in sort.split(';'):
            name = segment.strip()
            if not name:
                continue

            direction = 'asc'
            if name[0] in '-+':
                direction = 'desc' if name[0] == '-' else 'asc'
                name = name[1:].strip()

            if name == self.registry.identity_field and name not in self.registry:
                sorter[name] = direction
                continue

            prop = self._resolve(name)
            sorter[prop.canonical_name] = direction

        return sorter or None

    def parse_query(self, query: 'CollectionQuery') -> 'CollectionQuery':
        """
        Canonicalize the filter and sort of a collection query.

        Returns:
            New CollectionQuery; the given one is left untouched
        """
        sorter = self.parse_sort(query.sort) if query.sort else query.sorter
        return replace(query, filter=self.parse(query.filter), sorter=sorter)

    def _resolve(self, name: str) -> PropertyDescriptor:
        prop = self.registry.resolve(name)
        if prop is None or not prop.filterable:
            raise UnknownPropertyError(name)
        return prop

    def _transform(self, value: Any, depth: int, path: str,
                   date_property: Optional[str] = None) -> Any:
        """
        Rebuild a node of the tree.

        Args:
            value: Node to rebuild
            depth: Number of mappings and arrays above this node
            path: Location of the node, for error messages
            date_property: Name of the date property whose compared values
                are below this node, if any
        """
        if not isinstance(value, (list, dict)):
            if date_property is None:
                return value
            return self._coerce_date(value, date_property, path)

        if depth >= self.max_depth:
            raise SchemaViolationError(
                f"Filter nesting exceeds maximum depth of {self.max_depth}", path
            )

        if isinstance(value, list):
            # Lists are never keyed, so nothing is renamed at this level
            return [
                self._transform(item, depth + 1, f"{path}[{i}]", date_property)
                for i, item in enumerate(value)
            ]

        result: Dict[str, Any] = {}
        for key, item in value.items():
            if is_operator(key):
                if not FilterOperator.is_valid(key):
                    raise DisallowedOperatorError(key)
                operand_date = None if key in NON_VALUE_OPERATORS else date_property
                result[key] = self._transform(item, depth + 1, join_path(path, key), operand_date)
                continue

            prop = self._resolve(key)
            canonical = prop.canonical_name
            if canonical != key:
                self.logger.debug(f"Renamed {self.registry.entity}.{key} to {canonical}")
            if canonical in result:
                raise SchemaViolationError(
                    f"Property '{key}' repeats condition on '{canonical}'", path
                )
            result[canonical] = self._transform(
                item, depth + 1, join_path(path, canonical),
                key if prop.is_date else None,
            )

        return result

    def _coerce_date(self, value: Any, prop_name: str, path: str) -> Any:
        try:
            return to_datetime(value)
        except ValueError as e:
            raise SchemaViolationError(
                f"Invalid date for property '{prop_name}': {e}", path
            ) from e
