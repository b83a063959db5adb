"""
Data models for docquery.
"""

import json
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from .config import DEFAULT_PAGE_LIMIT
from .exceptions import QueryError, ValidationError
from .filters.base import FilterableParameters, SortableParameters


T = TypeVar('T')


@dataclass
class PopulateOptions:
    """
    Relation population options, nested the way the execution model expects.

    Attributes:
        path: Relation name
        select: Fields to keep on the populated documents
        populate: Relations to populate on the populated documents
    """
    path: str
    select: Optional[List[str]] = None
    populate: Optional[List['PopulateOptions']] = None

    def to_dict(self) -> Dict[str, Any]:
        """Export as dictionary, omitting unset members."""
        result: Dict[str, Any] = {'path': self.path}
        if self.select is not None:
            result['select'] = list(self.select)
        if self.populate is not None:
            result['populate'] = [p.to_dict() for p in self.populate]
        return result


Populate = Union[List[str], List[PopulateOptions]]
Projection = Union[str, List[str], Dict[str, int]]


@dataclass
class FindOptions:
    """
    Options for unpaginated queries. None means "leave the query alone".

    Attributes:
        limit: Maximum number of documents to return
        skip: Number of documents to skip
        sort: Sort order, field -> 'asc' | 'desc'
        populate: Relations to populate
        select: Fields to select/project
    """
    limit: Optional[int] = None
    skip: Optional[int] = None
    sort: Optional[SortableParameters] = None
    populate: Optional[Populate] = None
    select: Optional[Projection] = None


@dataclass
class CountQuery:
    """Counting request: a filter only."""
    filter: FilterableParameters = field(default_factory=dict)


@dataclass
class CollectionQuery:
    """
    Paginated collection request as decoded from transport parameters.

    Attributes:
        filter: Filter expression (decoded JSON object)
        sort: Raw sort string, e.g. "-created_at;filename"
        sorter: Parsed sort order, field -> 'asc' | 'desc'
        page: 1-based page number
        limit: Page size
    """
    filter: FilterableParameters = field(default_factory=dict)
    sort: Optional[str] = None
    sorter: Optional[SortableParameters] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_LIMIT

    def __post_init__(self):
        if self.filter is None:
            self.filter = {}
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            raise ValidationError(f"page must be an integer >= 1, got {self.page!r}")
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 1:
            raise ValidationError(f"limit must be an integer >= 1, got {self.limit!r}")

    @classmethod
    def from_params(cls,
                    filter: Optional[str] = None,
                    sort: Optional[str] = None,
                    page: Union[int, str, None] = None,
                    limit: Union[int, str, None] = None,
                    default_limit: int = DEFAULT_PAGE_LIMIT) -> 'CollectionQuery':
        """
        Build a query from raw request parameters.

        Args:
            filter: JSON object string
            sort: Sort string, fields separated by ';', '-' prefix for descending
            page: Page number (string or int)
            limit: Page size (string or int)
            default_limit: Page size when none is given

        Returns:
            CollectionQuery with a decoded (not yet validated) filter

        Raises:
            QueryError: If the filter is not a JSON object
            ValidationError: If page or limit are not integers >= 1
        """
        return cls(
            filter=decode_filter(filter),
            sort=sort or None,
            page=_to_int('page', page, 1),
            limit=_to_int('limit', limit, default_limit),
        )


def _to_int(name: str, value: Union[int, str, None], default: int) -> int:
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer, got {value!r}")


def _reject_constant(name: str) -> Any:
    raise QueryError(f"Filter contains non-finite number {name}")


def decode_filter(raw: Optional[str]) -> FilterableParameters:
    """
    Decode a transport-encoded filter.

    Args:
        raw: JSON object string, or None/empty for "no filter"

    Returns:
        Decoded filter dictionary

    Raises:
        QueryError: If the string is not valid JSON or not an object
    """
    if raw is None or raw.strip() == '':
        return {}
    try:
        decoded = json.loads(raw, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise QueryError(f"Filter is not valid JSON: {e}") from e
    except RecursionError as e:
        raise QueryError("Filter is nested too deeply") from e
    if not isinstance(decoded, dict):
        raise QueryError(f"Filter must be a JSON object, got {type(decoded).__name__}")
    return decoded


@dataclass
class Pagination:
    """
    Page bookkeeping for a paginated response.

    next and prev are None when there is no such page.
    """
    total: int
    page: int
    limit: int
    next: Optional[int] = None
    prev: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Export as dictionary, omitting absent next/prev."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class CollectionResponse(Generic[T]):
    """A page of documents plus its pagination."""
    data: List[T]
    pagination: Pagination

    def to_dict(self) -> Dict[str, Any]:
        return {'data': self.data, 'pagination': self.pagination.to_dict()}
