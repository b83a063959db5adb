#!/usr/bin/env python3
"""
DocumentCollector: the query API consumed by transports.

Combines an already-validated filter with a caller-invisible scope and issues
the resulting queries against an execution model. Nothing here validates the
caller's filter; run it through FilterParser first.
"""

import asyncio
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar, Union

from ..config import DEFAULT_IDENTITY_FIELD
from ..exceptions import CapabilityUnsupportedError, ValidationError
from ..filters.base import FilterableParameters, SortableParameters
from ..filters.registry import PropertyRegistry
from ..log_manager import get_logger
from ..models import (
    CollectionQuery, CollectionResponse, CountQuery, FindOptions, Pagination,
    Populate, PopulateOptions
)
from .capabilities import AggregateCapable, DistinctCapable, QueryModel


T = TypeVar('T')


class DocumentCollector(Generic[T]):
    """
    Scoped query collection over a single execution model.

    Responsibilities:
    - Conjoins the caller's filter with the service-injected scope
    - Pagination (skip/limit from page numbers, totals from a count)
    - Deterministic ordering by appending the identity field to sorts
    - Forwarding aggregate/distinct when the model supports them
    """

    def __init__(self, model: QueryModel, identity_field: str = DEFAULT_IDENTITY_FIELD):
        """
        Initialize the collector.

        Args:
            model: Execution model (find/count_documents, optionally aggregate/distinct)
            identity_field: Unique field used to break sort ties
        """
        self.model = model
        self.identity_field = identity_field
        self.logger = get_logger('DocumentCollector', component='executor')

    @classmethod
    def for_registry(cls, model: QueryModel, registry: PropertyRegistry) -> 'DocumentCollector[T]':
        """Create a collector using the identity field declared for an entity."""
        return cls(model, identity_field=registry.identity_field)

    # ============================================================================
    # Filter composition
    # ============================================================================

    def scoped_filter(self,
                      user_filter: Optional[FilterableParameters],
                      scope: Optional[FilterableParameters]) -> FilterableParameters:
        """
        Conjoin a caller filter with an authorization scope.

        Args:
            user_filter: Validated caller filter
            scope: Service-injected constraints (e.g. {'workspace': id})

        Returns:
            user_filter itself when scope is None or empty,
            otherwise {'$and': [user_filter, scope]}
        """
        if user_filter is None:
            user_filter = {}

        if scope is None:
            return user_filter
        if not isinstance(scope, Mapping):
            raise ValidationError(f"Scope must be a mapping, got {type(scope).__name__}")
        if len(scope) == 0:
            return user_filter

        return {'$and': [user_filter, dict(scope)]}

    def _with_tie_break(self, sort: SortableParameters) -> SortableParameters:
        # Equal sort keys leave the order undefined, which breaks skip/limit paging
        if self.identity_field in sort:
            return dict(sort)
        return {**sort, self.identity_field: 'asc'}

    @staticmethod
    def _populate_spec(populate: Populate) -> List[Any]:
        return [p.to_dict() if isinstance(p, PopulateOptions) else p for p in populate]

    # ============================================================================
    # Queries
    # ============================================================================

    async def find(self,
                   query: CollectionQuery,
                   scope: Optional[FilterableParameters] = None,
                   populate: Optional[Populate] = None) -> CollectionResponse[T]:
        """
        Fetch one page of documents.

        Args:
            query: Collection query with a validated filter
            scope: Additional scope filters (e.g., workspace, user)
            populate: Relations to populate

        Returns:
            CollectionResponse with the page data and pagination
        """
        scoped = self.scoped_filter(query.filter, scope)
        self.logger.debug(
            f"find page={query.page} limit={query.limit} sort={query.sorter} filter={scoped}"
        )

        q = (self.model.find(scoped)
             .populate(self._populate_spec(populate or []))
             .lean()
             .skip((query.page - 1) * query.limit)
             .limit(query.limit))

        if query.sorter:
            q = q.sort(self._with_tie_break(query.sorter))

        data_task = asyncio.ensure_future(q.exec())
        count_task = asyncio.ensure_future(self.model.count_documents(scoped).exec())
        try:
            data, total = await asyncio.gather(data_task, count_task)
        except BaseException:
            # gather leaves the sibling running when one side fails
            for task in (data_task, count_task):
                task.cancel()
            raise

        return CollectionResponse(
            data=list(data),
            pagination=self.paginate(query.page, query.limit, total),
        )

    @staticmethod
    def paginate(page: int, limit: int, total: int) -> Pagination:
        """
        Compute pagination for a page.

        next is absent once page * limit reaches total; prev is absent on page 1.
        """
        return Pagination(
            total=total,
            page=page,
            limit=limit,
            next=None if page * limit >= total else page + 1,
            prev=None if page == 1 else page - 1,
        )

    async def count(self,
                    query: Union[CountQuery, CollectionQuery, FilterableParameters, None],
                    scope: Optional[FilterableParameters] = None) -> int:
        """
        Count documents matching a query.

        Args:
            query: CountQuery, CollectionQuery or a bare filter
            scope: Additional scope filters

        Returns:
            Number of matching documents
        """
        if isinstance(query, (CountQuery, CollectionQuery)):
            user_filter = query.filter
        else:
            user_filter = query
        return await self.model.count_documents(self.scoped_filter(user_filter, scope)).exec()

    async def find_all(self,
                       filter: Optional[FilterableParameters] = None,
                       scope: Optional[FilterableParameters] = None,
                       options: Optional[FindOptions] = None) -> List[T]:
        """
        Find all documents matching filter, without pagination.

        Only options that are set are applied; nothing is defaulted.

        Args:
            filter: Filter criteria
            scope: Additional scope filters
            options: Query options (limit, skip, sort, populate, select)

        Returns:
            List of matching documents
        """
        options = options or FindOptions()
        scoped = self.scoped_filter(filter, scope)
        self.logger.debug(f"find_all filter={scoped} options={options}")

        q = self.model.find(scoped).lean()

        if options.populate is not None:
            q = q.populate(self._populate_spec(options.populate))

        if options.select is not None:
            q = q.select(options.select)

        if options.skip is not None:
            q = q.skip(options.skip)

        if options.limit is not None:
            q = q.limit(options.limit)

        if options.sort is not None:
            q = q.sort(self._with_tie_break(options.sort))

        return list(await q.exec())

    async def find_with_limit(self,
                              filter: Optional[FilterableParameters],
                              limit: int,
                              scope: Optional[FilterableParameters] = None,
                              populate: Optional[Populate] = None) -> List[T]:
        """Find at most `limit` documents."""
        return await self.find_all(filter, scope, FindOptions(limit=limit, populate=populate))

    async def find_one(self,
                       filter: Optional[FilterableParameters],
                       scope: Optional[FilterableParameters] = None,
                       options: Optional[FindOptions] = None) -> Optional[T]:
        """
        Find one document matching the filter.

        Returns:
            The first matching document or None
        """
        base = options or FindOptions()
        results = await self.find_all(filter, scope, FindOptions(
            limit=1,
            skip=base.skip,
            sort=base.sort,
            populate=base.populate,
            select=base.select,
        ))
        return results[0] if results else None

    async def exists(self,
                     filter: Optional[FilterableParameters],
                     scope: Optional[FilterableParameters] = None) -> bool:
        """
        Check if any document matches, counting at most one.
        """
        count = await (self.model
                       .count_documents(self.scoped_filter(filter, scope))
                       .limit(1)
                       .exec())
        return count > 0

    # ============================================================================
    # Optional capabilities
    # ============================================================================

    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Execute an aggregation pipeline.

        Raises:
            CapabilityUnsupportedError: If the model has no aggregate()
        """
        if not isinstance(self.model, AggregateCapable):
            self.logger.error(f"aggregate() called on {type(self.model).__name__}, which lacks it")
            raise CapabilityUnsupportedError('aggregation', self.model)
        return list(await self.model.aggregate(pipeline).exec())

    async def distinct(self,
                       field: str,
                       filter: Optional[FilterableParameters] = None,
                       scope: Optional[FilterableParameters] = None) -> List[Any]:
        """
        Get distinct values of a field among matching documents.

        Raises:
            CapabilityUnsupportedError: If the model has no distinct()
        """
        if not isinstance(self.model, DistinctCapable):
            self.logger.error(f"distinct() called on {type(self.model).__name__}, which lacks it")
            raise CapabilityUnsupportedError('distinct', self.model)
        return list(await self.model.distinct(field, self.scoped_filter(filter, scope)))
