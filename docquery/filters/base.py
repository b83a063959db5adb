#!/usr/bin/env python3
"""
Operator vocabulary shared by the filter parser and the grammar validator.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict


OPERATOR_SIGIL = "$"

FilterableParameters = Dict[str, Any]
SortableParameters = Dict[str, str]


class FilterOperator(Enum):
    """MongoDB-style query operators accepted from callers."""
    # Comparison
    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"

    # Array
    IN = "$in"
    NIN = "$nin"
    ALL = "$all"
    SIZE = "$size"
    ELEM_MATCH = "$elemMatch"

    # Logical
    AND = "$and"
    OR = "$or"
    NOR = "$nor"
    NOT = "$not"

    # Element
    EXISTS = "$exists"
    TYPE = "$type"

    # Text
    REGEX = "$regex"
    OPTIONS = "$options"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a string is an allowed operator."""
        return value in _ALLOWED


_ALLOWED = frozenset(op.value for op in FilterOperator)

COMBINATORS = frozenset({
    FilterOperator.AND.value, FilterOperator.OR.value, FilterOperator.NOR.value
})

# Operators whose values are never compared against the property value
NON_VALUE_OPERATORS = frozenset({
    FilterOperator.EXISTS.value, FilterOperator.SIZE.value,
    FilterOperator.TYPE.value, FilterOperator.REGEX.value,
    FilterOperator.OPTIONS.value,
})


def is_operator(key: str) -> bool:
    """Check whether a mapping key is an operator key."""
    return key.startswith(OPERATOR_SIGIL)


def is_scalar(value: Any) -> bool:
    """Check whether a value is a leaf filter value. NaN and infinities are not."""
    if isinstance(value, float):
        return math.isfinite(value)
    return value is None or isinstance(value, (str, int, bool, datetime))


def is_number(value: Any) -> bool:
    """Check for a finite int/float, excluding bool."""
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, int)
