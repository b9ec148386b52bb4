"""
Query building.

Builds the WHERE-clause predicate for a listing collection. The result is
always a Conjunction; unless the caller overrides scope, its last child is the
schema's default scope (job feed: status=active AND visibility=public).

Example:
    build_filter_predicate({"search": "engineer", "salary": "100000+"})
    -> Conjunction((
           RegexOr(("title", "description", "company.name", "requirements.skills"), "engineer"),
           Range("salary.min", min=100000),
           Conjunction((Equals("status", "active"), Equals("visibility", "public"))),
       ))
"""

import logging
from typing import Any, List, Mapping, Optional, Union

from listing_query.common.errors import QueryBuildError
from listing_query.query.listing_schema import JOB_FEED, ListingSchema
from listing_query.query.normalizer import normalize_filters, normalize_text
from listing_query.query.types import (
    Conjunction,
    Equals,
    FilterSpec,
    In,
    Predicate,
    Range,
    RegexOr,
)

logger = logging.getLogger(__name__)


def build_scope_predicate(schema: ListingSchema = JOB_FEED) -> Conjunction:
    """Default visibility/status scope for a listing."""
    return Conjunction(tuple(schema.default_scope))


def build_filter_predicate(
    filters: Union[FilterSpec, Mapping[str, Any], None] = None,
    schema: ListingSchema = JOB_FEED,
    tenant_id: Optional[str] = None,
    apply_default_scope: bool = True,
) -> Conjunction:
    """
    Build the filter predicate for a listing query.

    Args:
        filters: FilterSpec or raw filter mapping
        schema: Listing schema with physical field paths
        tenant_id: Restrict to one tenant/organization when given
        apply_default_scope: False for administrative or author-scoped queries

    Returns:
        Conjunction of the present filters, tenant and default scope

    Raises:
        QueryBuildError subclass on invalid filters (nothing is built)
    """
    normalized = normalize_filters(filters, schema)
    tenant = normalize_text(tenant_id, schema.tenant_field)

    children: List[Predicate] = []

    if normalized.search:
        children.append(RegexOr(schema.search_fields, normalized.search))

    if normalized.location:
        children.append(RegexOr(schema.location_fields, normalized.location))

    if normalized.category:
        children.append(Equals(schema.category_field, normalized.category))

    if normalized.experience_level:
        children.append(Equals(schema.experience_field, normalized.experience_level))

    if normalized.amount_range is not None:
        children.append(
            Range(schema.range_field, min=normalized.amount_range.min, max=normalized.amount_range.max)
        )

    if normalized.tags:
        children.append(In(schema.tags_field, tuple(normalized.tags)))

    if tenant:
        children.append(Equals(schema.tenant_field, tenant))

    if apply_default_scope:
        children.append(build_scope_predicate(schema))
    else:
        logger.debug(f"Default scope disabled for {schema.name} query")

    return Conjunction(tuple(children))


def _scoped(extra: List[Predicate], tenant_id: Optional[str], schema: ListingSchema) -> Conjunction:
    base = build_filter_predicate(None, schema=schema, tenant_id=tenant_id)
    return Conjunction(tuple(extra) + base.children)


def build_featured_predicate(tenant_id: Optional[str] = None) -> Conjunction:
    """Active public jobs flagged as featured."""
    return _scoped([Equals("featured", True)], tenant_id, JOB_FEED)


def build_urgent_predicate(tenant_id: Optional[str] = None) -> Conjunction:
    """Active public jobs flagged as urgent."""
    return _scoped([Equals("urgent", True)], tenant_id, JOB_FEED)


def build_company_predicate(company_id: str, tenant_id: Optional[str] = None) -> Conjunction:
    """Active public jobs posted by one company."""
    company = normalize_text(company_id, "company._id")
    if company is None:
        raise QueryBuildError("company_id is required", field="company._id", value=company_id)
    return _scoped([Equals("company._id", company)], tenant_id, JOB_FEED)


def build_location_predicate(location: str, tenant_id: Optional[str] = None) -> Conjunction:
    """Active public jobs whose city or country contains `location`."""
    return build_filter_predicate({"location": location}, schema=JOB_FEED, tenant_id=tenant_id)
