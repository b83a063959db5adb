#!/usr/bin/env python3
"""
Grammar validation for canonical MongoDB-style filters.

The validator only checks shapes. Which property names exist is the parser's
business; by the time a filter reaches validate() every property key has
already been resolved and date values coerced.

Grammar:

    Props      := Map<Field, Scalar> | Map<Field, Comparison>
                | Map<Field, Array<Scalar>> | Map<Field, Logical>
                | Map<"$and"|"$or"|"$nor", Array<Props>>
    Logical    := { "$not": Comparison }
    Comparison := { "$regex": str, "$options"?: /^[imxs]*$/ }
                | { "$eq"|"$ne": Scalar }
                | { "$gt"|"$gte"|"$lt"|"$lte": str|number|object }
                | { "$in"|"$nin"|"$all": Array<Scalar> }
                | { "$exists": bool } | { "$size": number >= 0 }
                | { "$type": str|number }
                | { any of $exists,$ne,$eq,$gt,$gte,$lt,$lte,$in,$nin,$not }
                | { "$elemMatch": Props }
"""

import re
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, NamedTuple, Optional

from ..exceptions import SchemaViolationError
from .base import COMBINATORS, is_number, is_operator, is_scalar


FIELD_NAME = re.compile(r'^[a-zA-Z_]')
REGEX_OPTIONS = re.compile(r'[imxs]*')


class _Shape(NamedTuple):
    operators: FrozenSet[str]
    required: FrozenSet[str] = frozenset()


# Alternatives of the Comparison rule. { "$not": ... } (Logical) is covered
# by the combined shape.
COMPARISON_SHAPES = (
    _Shape(frozenset({"$regex", "$options"}), frozenset({"$regex"})),
    _Shape(frozenset({"$eq", "$ne"})),
    _Shape(frozenset({"$gt", "$gte", "$lt", "$lte"})),
    _Shape(frozenset({"$in", "$nin", "$all"})),
    _Shape(frozenset({"$exists"})),
    _Shape(frozenset({"$size"})),
    _Shape(frozenset({"$type"})),
    _Shape(frozenset({"$exists", "$ne", "$eq", "$gt", "$gte", "$lt", "$lte",
                      "$in", "$nin", "$not"})),
    _Shape(frozenset({"$elemMatch"})),
)

COMPARISON_OPERATORS = frozenset().union(*(shape.operators for shape in COMPARISON_SHAPES))


def join_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, float):
        return "non-finite number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, datetime):
        return "date"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class FilterSchemaValidator:
    """
    Validates the structure of a transformed filter tree.

    Errors carry a dotted path such as ``$or[1].mimetype.$regex`` so the
    caller can locate the failing clause.
    """

    def validate(self, filters: Dict[str, Any]) -> bool:
        """
        Validate a filter tree.

        Args:
            filters: Canonical filter dictionary

        Returns:
            True when the filter matches the grammar

        Raises:
            SchemaViolationError: If any clause does not match
        """
        self._validate_props(filters, "")
        return True

    def _validate_props(self, obj: Any, path: str) -> None:
        """Validate a clause: either field conditions or $and/$or/$nor."""
        if not isinstance(obj, dict):
            raise SchemaViolationError(
                f"Expected an object of conditions, got {_type_name(obj)}", path
            )

        operators = [key for key in obj if is_operator(key)]
        fields = [key for key in obj if not is_operator(key)]

        if operators and fields:
            raise SchemaViolationError(
                f"Cannot mix field conditions with {', '.join(operators)} in one clause; "
                f"wrap them in $and", path
            )

        for key in operators:
            self._validate_combinator(key, obj[key], join_path(path, key))

        kinds: Dict[str, str] = {}
        for key in fields:
            field_path = join_path(path, key)
            if not FIELD_NAME.match(key):
                raise SchemaViolationError(f"Invalid field name '{key}'", field_path)

            value = obj[key]
            if is_scalar(value):
                kinds.setdefault("plain value", key)
            elif isinstance(value, list):
                self._validate_scalar_array(value, field_path)
                kinds.setdefault("array", key)
            elif isinstance(value, dict):
                self._validate_comparison(value, field_path)
                kinds.setdefault("operator object", key)
            else:
                raise SchemaViolationError(
                    f"Unsupported value of type {_type_name(value)}", field_path
                )

        if len(kinds) > 1:
            described = ", ".join(f"'{field}' is a {kind}" for kind, field in kinds.items())
            raise SchemaViolationError(
                f"All conditions of one clause must have the same form ({described}); "
                f"wrap them in $and", path
            )

    def _validate_combinator(self, op: str, value: Any, path: str) -> None:
        """Validate $and, $or and $nor."""
        if op not in COMBINATORS:
            raise SchemaViolationError(
                f"Operator '{op}' is not allowed at clause level", path
            )
        if not isinstance(value, list):
            raise SchemaViolationError(
                f"{op} requires an array of clauses, got {_type_name(value)}", path
            )
        for i, clause in enumerate(value):
            self._validate_props(clause, f"{path}[{i}]")

    def _validate_comparison(self, value: Dict[str, Any], path: str) -> None:
        """Validate the operator object attached to a field."""
        if not value:
            return

        for key in value:
            if not is_operator(key):
                raise SchemaViolationError(
                    f"Expected an operator, got field '{key}'; "
                    f"match sub-documents with $elemMatch", join_path(path, key)
                )
            if key not in COMPARISON_OPERATORS:
                raise SchemaViolationError(
                    f"Operator '{key}' is not allowed on a field", join_path(path, key)
                )

        keys = set(value)
        if not any(keys <= shape.operators and shape.required <= keys
                   for shape in COMPARISON_SHAPES):
            if "$options" in keys and "$regex" not in keys:
                raise SchemaViolationError("$options requires $regex", path)
            raise SchemaViolationError(
                f"Operators {', '.join(sorted(keys))} cannot be combined", path
            )

        for key, operand in value.items():
            self._check_operand(key, operand, join_path(path, key))

    def _check_operand(self, op: str, operand: Any, path: str) -> None:
        """Type-check one operator's operand."""
        check = self._OPERAND_CHECKS[op]
        expected = check(self, operand, path)
        if expected:
            raise SchemaViolationError(
                f"{op} requires {expected}, got {_type_name(operand)}", path
            )

    # Each check returns a description of the expected operand when it fails,
    # or None when the operand is acceptable.

    def _scalar(self, operand: Any, path: str) -> Optional[str]:
        if not is_scalar(operand):
            return "a string, number, boolean or null"
        return None

    def _ordered(self, operand: Any, path: str) -> Optional[str]:
        if not (isinstance(operand, (str, dict, datetime)) or is_number(operand)):
            return "a string, number or object"
        return None

    def _scalars(self, operand: Any, path: str) -> Optional[str]:
        if not isinstance(operand, list):
            return "an array"
        self._validate_scalar_array(operand, path)
        return None

    def _boolean(self, operand: Any, path: str) -> Optional[str]:
        if not isinstance(operand, bool):
            return "a boolean"
        return None

    def _size(self, operand: Any, path: str) -> Optional[str]:
        if not is_number(operand) or operand < 0:
            return "a non-negative number"
        return None

    def _type(self, operand: Any, path: str) -> Optional[str]:
        if not (isinstance(operand, str) or is_number(operand)):
            return "a string or number"
        return None

    def _regex(self, operand: Any, path: str) -> Optional[str]:
        if not isinstance(operand, str):
            return "a string"
        return None

    def _options(self, operand: Any, path: str) -> Optional[str]:
        if not isinstance(operand, str) or not REGEX_OPTIONS.fullmatch(operand):
            return "a string of regex flags among i, m, x, s"
        return None

    def _not(self, operand: Any, path: str) -> Optional[str]:
        if not isinstance(operand, dict):
            return "an operator object"
        self._validate_comparison(operand, path)
        return None

    def _elem_match(self, operand: Any, path: str) -> Optional[str]:
        if not isinstance(operand, dict):
            return "an object of conditions"
        self._validate_props(operand, path)
        return None

    def _validate_scalar_array(self, items: List[Any], path: str) -> None:
        for i, item in enumerate(items):
            if not is_scalar(item):
                raise SchemaViolationError(
                    f"Array items must be strings, numbers, booleans or null, "
                    f"got {_type_name(item)}", f"{path}[{i}]"
                )

    _OPERAND_CHECKS: Dict[str, Callable[['FilterSchemaValidator', Any, str], Optional[str]]] = {
        "$eq": _scalar,
        "$ne": _scalar,
        "$gt": _ordered,
        "$gte": _ordered,
        "$lt": _ordered,
        "$lte": _ordered,
        "$in": _scalars,
        "$nin": _scalars,
        "$all": _scalars,
        "$exists": _boolean,
        "$size": _size,
        "$type": _type,
        "$regex": _regex,
        "$options": _options,
        "$not": _not,
        "$elemMatch": _elem_match,
    }
