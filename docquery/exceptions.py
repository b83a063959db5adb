"""
Exception classes for docquery.
"""

from typing import Optional


class DocQueryError(Exception):
    """Base exception for all docquery errors."""
    pass


class QueryError(DocQueryError):
    """Raised when request parameters cannot be decoded."""
    pass


class ValidationError(DocQueryError):
    """Raised when input validation fails."""
    pass


class RegistryError(DocQueryError):
    """Raised when property exposure declarations are malformed."""
    pass


class FilterValidationError(ValidationError):
    """
    Base exception for rejected filters.

    Transports can surface ``str(error)`` to the caller as is.
    """

    def __init__(self, reason: str):
        super().__init__(f"Filter validation failed: {reason}")
        self.reason = reason


class UnknownPropertyError(FilterValidationError):
    """Raised when a property is not exposed for filtering."""

    def __init__(self, property_name: str):
        super().__init__(f"Property '{property_name}' is not exposed for filtering.")
        self.property = property_name


class DisallowedOperatorError(FilterValidationError):
    """Raised when an operator key is not in the allow-list."""

    def __init__(self, operator: str):
        super().__init__(f"Key '{operator}' is not allowed for filtering.")
        self.operator = operator


class SchemaViolationError(FilterValidationError):
    """Raised when a transformed filter does not match the grammar."""

    def __init__(self, message: str, path: Optional[str] = None):
        location = path or "<root>"
        super().__init__(f"{message} (at {location})")
        self.path = location
        self.detail = message


class CapabilityUnsupportedError(DocQueryError):
    """Raised when the execution model lacks an optional capability."""

    def __init__(self, capability: str, model: object = None):
        name = type(model).__name__ if model is not None else "model"
        super().__init__(f"{capability.capitalize()} not supported by {name}")
        self.capability = capability
