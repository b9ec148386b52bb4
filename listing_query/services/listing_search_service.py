"""
Listing Search Service

Runs filtered, sorted, paginated listing searches and the insight pipelines
through a ListingRepositoryInterface, and shapes the rows for API responses.

Architecture:
    - Query structures come from the pure builders in listing_query.query
    - The repository decides how they execute (MongoDB or in-memory)
    - Every input is validated before any repository call is made

Usage:
    service = ListingSearchService(get_listing_repository("job_feed"))
    page = service.search({"search": "engineer", "salary": "100000+"}, page=2)
    skills = service.get_skill_insights(tenant_id="acme")
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from bson import ObjectId

from listing_query.common.errors import UnsupportedFilterError
from listing_query.common.listing_config import ListingQueryConfig
from listing_query.common.logger import get_logger
from listing_query.common.repositories.base import ListingRepositoryInterface
from listing_query.query.listing_schema import JOB_FEED, ListingSchema
from listing_query.query.params_builder import (
    ParsedQuery,
    build_query_params,
    encode_query_params,
    parse_query_params,
)
from listing_query.query.pipeline_builder import (
    build_catalog_statistics_pipeline,
    build_company_insights_pipeline,
    build_location_insights_pipeline,
    build_skill_insights_pipeline,
    build_statistics_pipeline,
)
from listing_query.query.query_builder import (
    build_company_predicate,
    build_featured_predicate,
    build_filter_predicate,
    build_location_predicate,
    build_urgent_predicate,
)
from listing_query.query.sort_builder import build_sort, build_sort_from_spec
from listing_query.query.types import FilterSpec, PaginationSpec, PercentageBasis, SortSpec

logger = logging.getLogger(__name__)

Filters = Union[FilterSpec, Mapping[str, Any], None]

JOB_STATISTICS_DEFAULTS: Dict[str, Any] = {
    "total": 0,
    "totalViews": 0,
    "totalApplications": 0,
    "totalShortlisted": 0,
    "totalHired": 0,
    "featured": 0,
    "urgent": 0,
    "avgViews": 0,
    "avgApplications": 0,
}

CATALOG_STATISTICS_DEFAULTS: Dict[str, Any] = {
    "total": 0,
    "active": 0,
    "draft": 0,
    "published": 0,
    "totalEnrollments": 0,
    "totalViews": 0,
    "averageRating": 0,
}


@dataclass
class ListingPage:
    """One page of search results with pagination metadata."""
    items: List[Dict[str, Any]]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool = False
    has_prev: bool = False
    sort_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "items": self.items,
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "pages": self.pages,
                "hasNext": self.has_next,
                "hasPrev": self.has_prev,
            },
            "sortFallback": self.sort_fallback,
        }


def _stringify_id(document: Dict[str, Any]) -> Dict[str, Any]:
    if isinstance(document.get("_id"), ObjectId):
        document["_id"] = str(document["_id"])
    return document


class ListingSearchService:
    """
    Search and insights over one listing collection.

    The schema picks the field layout (job feed or training catalog); insight
    pipelines other than statistics exist only for the job feed.
    """

    def __init__(
        self,
        repository: ListingRepositoryInterface,
        schema: ListingSchema = JOB_FEED,
        config: Optional[ListingQueryConfig] = None,
    ):
        """
        Initialize the listing search service.

        Args:
            repository: Repository for the schema's collection
            schema: Listing schema (default: job feed)
            config: Optional configuration (loads from env if not provided)
        """
        self.repository = repository
        self.schema = schema
        self.config = config or ListingQueryConfig.from_env()

    def _pagination(self, page: int, limit: Optional[int]) -> PaginationSpec:
        if limit is None:
            default = self.config.default_page_size or self.schema.default_page_size
            limit = min(default, self.config.max_page_size)
        return PaginationSpec(page=page, limit=limit, max_limit=self.config.max_page_size)

    def _require_job_feed(self, operation: str) -> None:
        if self.schema is not JOB_FEED:
            raise UnsupportedFilterError(
                f"{operation} is only available for the job feed, not '{self.schema.name}'",
                field="schema",
                value=self.schema.name,
            )

    # =========================================================================
    # Search
    # =========================================================================

    def search(
        self,
        filters: Filters = None,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        limit: Optional[int] = None,
        tenant_id: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> ListingPage:
        """
        Run a filtered, sorted, paginated search.

        Args:
            filters: FilterSpec or raw filter mapping
            sort: Optional sort spec (default: createdAt desc)
            page: 1-based page number
            limit: Page size (default: the configured page size, else the schema's)
            tenant_id: Restrict to one tenant
            request_id: Correlation id for log lines

        Returns:
            ListingPage with items and pagination metadata

        Raises:
            QueryBuildError subclass on invalid input (no query is issued)
        """
        log = get_logger(__name__, request_id=request_id, component="search")

        pagination = self._pagination(page, limit)
        predicate = build_filter_predicate(filters, schema=self.schema, tenant_id=tenant_id)
        sort_key = build_sort_from_spec(sort, schema=self.schema)

        items = self.repository.find(
            predicate, sort=sort_key, skip=pagination.skip, limit=pagination.limit
        )
        total = self.repository.count(predicate)
        pages = pagination.total_pages(total)

        log.debug(
            f"{self.schema.name} page {pagination.page}/{pages}: "
            f"{len(items)} of {total} (sort {sort_key.field} {sort_key.direction})"
        )

        return ListingPage(
            items=[_stringify_id(item) for item in items],
            total=total,
            page=pagination.page,
            limit=pagination.limit,
            pages=pages,
            has_next=pagination.page < pages,
            has_prev=pagination.page > 1,
            sort_fallback=sort_key.is_fallback,
        )

    def _list(self, predicate, limit: int) -> List[Dict[str, Any]]:
        pagination = self._pagination(1, limit)
        items = self.repository.find(
            predicate, sort=build_sort(None, schema=self.schema), limit=pagination.limit
        )
        return [_stringify_id(item) for item in items]

    def list_featured(self, limit: int = 6, tenant_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Newest featured jobs."""
        self._require_job_feed("Featured listing")
        return self._list(build_featured_predicate(tenant_id), limit)

    def list_urgent(self, limit: int = 6, tenant_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Newest urgent jobs."""
        self._require_job_feed("Urgent listing")
        return self._list(build_urgent_predicate(tenant_id), limit)

    def list_by_company(
        self, company_id: str, limit: int = 10, tenant_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Newest jobs from one company."""
        self._require_job_feed("Company listing")
        return self._list(build_company_predicate(company_id, tenant_id), limit)

    def list_by_location(
        self, location: str, limit: int = 10, tenant_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Newest jobs whose city or country contains `location`."""
        self._require_job_feed("Location listing")
        return self._list(build_location_predicate(location, tenant_id), limit)

    # =========================================================================
    # Insights
    # =========================================================================

    def get_statistics(self, tenant_id: Optional[str] = None, filters: Filters = None) -> Dict[str, Any]:
        """
        Aggregate statistics for the listing.

        Returns zeroed defaults when nothing matches.
        """
        if self.schema is JOB_FEED:
            pipeline = build_statistics_pipeline(tenant_id=tenant_id, filters=filters)
            defaults = JOB_STATISTICS_DEFAULTS
        else:
            if filters:
                raise UnsupportedFilterError(
                    "Catalog statistics do not accept filters", field="filters", value=filters
                )
            pipeline = build_catalog_statistics_pipeline(tenant_id=tenant_id)
            defaults = CATALOG_STATISTICS_DEFAULTS

        rows = self.repository.aggregate(pipeline)
        stats = dict(defaults)
        if rows:
            stats.update({k: v for k, v in rows[0].items() if k != "_id" and v is not None})
        else:
            logger.info(f"No {self.schema.name} documents matched statistics query")
        return stats

    def get_company_insights(
        self, tenant_id: Optional[str] = None, filters: Filters = None
    ) -> List[Dict[str, Any]]:
        """Top companies by job count."""
        self._require_job_feed("Company insights")
        pipeline = build_company_insights_pipeline(
            tenant_id=tenant_id, filters=filters, limit=self.config.top_companies
        )
        rows = self.repository.aggregate(pipeline)
        return [{"name": row.pop("_id"), **row} for row in rows]

    def get_location_insights(
        self, tenant_id: Optional[str] = None, filters: Filters = None
    ) -> List[Dict[str, Any]]:
        """Top (city, country) pairs by job count."""
        self._require_job_feed("Location insights")
        pipeline = build_location_insights_pipeline(
            tenant_id=tenant_id, filters=filters, limit=self.config.top_locations
        )
        insights = []
        for row in self.repository.aggregate(pipeline):
            key = row.pop("_id") or {}
            insights.append({"city": key.get("city"), "country": key.get("country"), **row})
        return insights

    def get_skill_insights(
        self,
        tenant_id: Optional[str] = None,
        filters: Filters = None,
        percentage_basis: Optional[PercentageBasis] = None,
    ) -> List[Dict[str, Any]]:
        """
        Most requested skills.

        Each row carries the skill name, its count, the number of distinct
        jobs requesting it (relatedJobs) with their ids (relatedJobIds), and
        its percentage under the configured basis.
        """
        self._require_job_feed("Skill insights")
        pipeline = build_skill_insights_pipeline(
            tenant_id=tenant_id,
            filters=filters,
            limit=self.config.top_skills,
            percentage_basis=percentage_basis or self.config.skill_percentage_basis,
        )
        insights = []
        for row in self.repository.aggregate(pipeline):
            related = [str(job_id) for job_id in row.get("relatedJobs") or []]
            insights.append({
                "name": row.get("_id"),
                "count": row.get("count", 0),
                "percentage": row.get("percentage"),
                "relatedJobs": len(related),
                "relatedJobIds": related,
            })
        return insights

    # =========================================================================
    # Remote API
    # =========================================================================

    def build_remote_query(
        self,
        filters: Filters = None,
        sort: Optional[SortSpec] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> str:
        """Encoded query string for the remote listing API."""
        pagination = self._pagination(page, limit)
        params = build_query_params(
            pagination.page,
            pagination.limit,
            filters=filters,
            sort=sort,
            schema=self.schema,
            max_limit=self.config.max_page_size,
        )
        return encode_query_params(params)

    def parse_remote_query(self, query: Union[str, Mapping[str, str]]) -> ParsedQuery:
        """Inverse of build_remote_query, accepting the same page sizes."""
        return parse_query_params(query, schema=self.schema, max_limit=self.config.max_page_size)
