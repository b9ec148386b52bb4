"""
Query building for listing searches.

Pure builders (no I/O) plus the adapters that execute their output:

    normalizer        raw filters -> typed values
    params_builder    remote API request parameters
    query_builder     filter predicates
    sort_builder      logical sort key -> physical field
    pipeline_builder  statistics and insight pipelines
    mongo_adapter     MongoDB syntax
    memory_engine     in-process evaluation
"""

from listing_query.query.listing_schema import JOB_FEED, TRAINING_CATALOG, ListingSchema, get_schema
from listing_query.query.normalizer import normalize_filters, parse_range
from listing_query.query.params_builder import (
    build_query_params,
    build_search_string,
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
from listing_query.query.query_builder import build_filter_predicate
from listing_query.query.sort_builder import build_sort
from listing_query.query.types import (
    FilterSpec,
    PaginationSpec,
    PercentageBasis,
    SortKey,
    SortSpec,
)

__all__ = [
    # Schemas
    "JOB_FEED",
    "TRAINING_CATALOG",
    "ListingSchema",
    "get_schema",
    # Specs
    "FilterSpec",
    "SortSpec",
    "PaginationSpec",
    "SortKey",
    "PercentageBasis",
    # Builders
    "normalize_filters",
    "parse_range",
    "build_query_params",
    "encode_query_params",
    "parse_query_params",
    "build_search_string",
    "build_filter_predicate",
    "build_sort",
    "build_statistics_pipeline",
    "build_company_insights_pipeline",
    "build_location_insights_pipeline",
    "build_skill_insights_pipeline",
    "build_catalog_statistics_pipeline",
]
