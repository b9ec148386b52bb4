"""
Request parameter building for remote listing APIs.

build_query_params serializes pagination, normalized filters and sort into an
ordered list of (key, value) string pairs. Key order is fixed:

    page, limit, search, location, <category>, <experience>,
    <range>Min, <range>Max, tags..., sortBy, sortOrder

so the same input always produces the same query string. parse_query_params
is the inverse used by the receiving side. build_search_string folds the
text filters into one "term location:x type:y" string.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode

from listing_query.common.errors import InvalidPaginationError, MalformedRangeError
from listing_query.query.listing_schema import JOB_FEED, ListingSchema
from listing_query.query.normalizer import normalize_filters
from listing_query.query.types import MAX_PAGE_SIZE, FilterSpec, PaginationSpec, SortSpec

logger = logging.getLogger(__name__)

QueryParams = List[Tuple[str, str]]


@dataclass(frozen=True)
class ParsedQuery:
    """Specs reconstructed from request parameters."""
    pagination: PaginationSpec
    filters: FilterSpec
    sort: Optional[SortSpec] = None


def build_query_params(
    page: int,
    limit: int,
    filters: Union[FilterSpec, Mapping[str, Any], None] = None,
    sort: Optional[SortSpec] = None,
    schema: ListingSchema = JOB_FEED,
    max_limit: int = MAX_PAGE_SIZE,
) -> QueryParams:
    """
    Build ordered request parameters.

    Args:
        page: 1-based page number
        limit: Page size
        filters: FilterSpec or raw filter mapping
        sort: Optional sort spec; the logical key is sent as-is
        schema: Listing schema providing parameter names
        max_limit: Largest accepted page size

    Returns:
        List of (key, value) pairs; "tags" may repeat

    Raises:
        InvalidPaginationError, MalformedRangeError, TypeMismatchError,
        UnsupportedFilterError
    """
    pagination = PaginationSpec(page=page, limit=limit, max_limit=max_limit)
    normalized = normalize_filters(filters, schema)

    params: QueryParams = [
        ("page", str(pagination.page)),
        ("limit", str(pagination.limit)),
    ]

    if normalized.search:
        params.append(("search", normalized.search))
    if normalized.location:
        params.append(("location", normalized.location))
    if normalized.category:
        params.append((schema.category_param, normalized.category))
    if normalized.experience_level:
        params.append((schema.experience_param, normalized.experience_level))
    if normalized.amount_range is not None:
        if normalized.amount_range.min is not None:
            params.append((schema.range_min_param(), str(normalized.amount_range.min)))
        if normalized.amount_range.max is not None:
            params.append((schema.range_max_param(), str(normalized.amount_range.max)))
    for tag in normalized.tags or []:
        params.append(("tags", tag))

    if sort is not None:
        if sort.sort_by:
            params.append(("sortBy", sort.sort_by))
        if sort.sort_order:
            params.append(("sortOrder", sort.sort_order))

    return params


def encode_query_params(params: QueryParams) -> str:
    """URL-encode parameters preserving their order."""
    return urlencode(params)


def build_search_string(
    filters: Union[FilterSpec, Mapping[str, Any], None] = None,
    schema: ListingSchema = JOB_FEED,
) -> str:
    """
    Build a single free-text search string for search boxes and remote
    full-text endpoints.

    The term comes first, then qualifiers in a fixed order:

        "<term> location:<x> type:<category> experience:<level>"

    Blank fields are left out. Range and tags have no qualifier.

    Raises:
        Same errors as normalize_filters
    """
    normalized = normalize_filters(filters, schema)

    terms = []
    if normalized.search:
        terms.append(normalized.search)
    if normalized.location:
        terms.append(f"location:{normalized.location}")
    if normalized.category:
        terms.append(f"type:{normalized.category}")
    if normalized.experience_level:
        terms.append(f"experience:{normalized.experience_level}")

    return " ".join(terms)


def _parse_int(value: str, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidPaginationError(
            f"{field} must be an integer, got {value!r}", field=field, value=value
        ) from None


def parse_query_params(
    query: Union[str, Mapping[str, str], Iterable[Tuple[str, str]]],
    schema: ListingSchema = JOB_FEED,
    max_limit: int = MAX_PAGE_SIZE,
) -> ParsedQuery:
    """
    Reconstruct specs from request parameters.

    Args:
        query: Encoded query string, mapping, or (key, value) pairs
        schema: Listing schema providing parameter names
        max_limit: Largest accepted page size, matching the one the
            parameters were built with

    Returns:
        ParsedQuery whose filters normalize to the same values that produced
        the parameters

    Raises:
        InvalidPaginationError: page/limit not integers or out of bounds
        MalformedRangeError: only an upper range bound was sent
    """
    if isinstance(query, str):
        pairs = parse_qsl(query.lstrip("?"))
    elif isinstance(query, Mapping):
        pairs = list(query.items())
    else:
        pairs = list(query)

    single = {}
    tags: List[str] = []
    for key, value in pairs:
        if key == "tags":
            tags.append(value)
        else:
            single[key] = value

    pagination = PaginationSpec(
        page=_parse_int(single["page"], "page") if "page" in single else 1,
        limit=(
            _parse_int(single["limit"], "limit") if "limit" in single
            else min(schema.default_page_size, max_limit)
        ),
        max_limit=max_limit,
    )

    range_min = single.get(schema.range_min_param())
    range_max = single.get(schema.range_max_param())
    if range_min is not None and range_max is not None:
        amount_range = f"{range_min}-{range_max}"
    elif range_min is not None:
        amount_range = f"{range_min}+"
    elif range_max is not None:
        raise MalformedRangeError(
            f"{schema.range_max_param()} sent without {schema.range_min_param()}",
            field=schema.range_param,
            value=range_max,
        )
    else:
        amount_range = None

    filters = FilterSpec(
        search=single.get("search"),
        location=single.get("location"),
        category=single.get(schema.category_param),
        experience_level=single.get(schema.experience_param),
        amount_range=amount_range,
        tags=tags or None,
    )
    # Fail fast on values the builders would reject
    normalize_filters(filters, schema)

    sort = None
    if "sortBy" in single or "sortOrder" in single:
        sort = SortSpec(sort_by=single.get("sortBy"), sort_order=single.get("sortOrder", "desc"))

    logger.debug(f"Parsed {len(pairs)} params for {schema.name}: page={pagination.page} limit={pagination.limit}")

    return ParsedQuery(pagination=pagination, filters=filters, sort=sort)
