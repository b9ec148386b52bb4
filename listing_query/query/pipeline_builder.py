"""
Aggregation pipeline building for listing analytics.

Every pipeline starts with a Match stage produced by build_filter_predicate,
so it is scoped to active/public listings and optionally to one tenant.
Stage order is part of the contract:

    statistics:  Match -> Group(None)
    companies:   Match -> Group(company) -> Sort(jobsCount desc) -> Limit(10)
    locations:   Match -> Group(city, country) -> Sort(jobsCount desc) -> Limit(10)
    skills:      Match -> Unwind(skills) -> Group(skill) -> AddField(percentage)
                 -> Sort(count desc) -> Limit(20)

Skill percentage: the legacy pipeline divided each skill's count by a sum
taken inside the same group, which always yields 100. PercentageBasis.TOTAL
(default) divides by the total count across all skills instead;
PercentageBasis.GROUP keeps the legacy value for callers that depend on it.
"""

from typing import Any, Mapping, Optional, Union

from listing_query.common.errors import QueryBuildError
from listing_query.query.listing_schema import JOB_FEED, TRAINING_CATALOG
from listing_query.query.query_builder import build_filter_predicate
from listing_query.query.types import (
    AddField,
    AggregateOp,
    Aggregation,
    DESCENDING,
    Equals,
    FilterSpec,
    Group,
    Limit,
    Match,
    Percentage,
    PercentageBasis,
    Pipeline,
    Sort,
    Unwind,
)

TOP_COMPANIES_LIMIT = 10
TOP_LOCATIONS_LIMIT = 10
TOP_SKILLS_LIMIT = 20

Filters = Union[FilterSpec, Mapping[str, Any], None]


def _check_limit(limit: int, name: str) -> int:
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
        raise QueryBuildError(f"{name} must be a positive integer, got {limit!r}", field=name, value=limit)
    return limit


def _job_match(filters: Filters, tenant_id: Optional[str]) -> Match:
    return Match(build_filter_predicate(filters, schema=JOB_FEED, tenant_id=tenant_id))


def build_statistics_pipeline(tenant_id: Optional[str] = None, filters: Filters = None) -> Pipeline:
    """
    Overall job statistics: one row with totals, flag counts and averages.

    Row fields: total, totalViews, totalApplications, totalShortlisted,
    totalHired, featured, urgent, avgViews, avgApplications.
    """
    match = _job_match(filters, tenant_id)
    return [
        match,
        Group(
            key=None,
            aggregations=(
                Aggregation("total", AggregateOp.COUNT),
                Aggregation("totalViews", AggregateOp.SUM, "analytics.views"),
                Aggregation("totalApplications", AggregateOp.SUM, "analytics.applications"),
                Aggregation("totalShortlisted", AggregateOp.SUM, "analytics.shortlisted"),
                Aggregation("totalHired", AggregateOp.SUM, "analytics.hired"),
                Aggregation("featured", AggregateOp.COUNT_IF, "featured"),
                Aggregation("urgent", AggregateOp.COUNT_IF, "urgent"),
                Aggregation("avgViews", AggregateOp.AVG, "analytics.views"),
                Aggregation("avgApplications", AggregateOp.AVG, "analytics.applications"),
            ),
        ),
    ]


def build_company_insights_pipeline(
    tenant_id: Optional[str] = None,
    filters: Filters = None,
    limit: int = TOP_COMPANIES_LIMIT,
) -> Pipeline:
    """Top companies by number of matching jobs."""
    limit = _check_limit(limit, "limit")
    match = _job_match(filters, tenant_id)
    return [
        match,
        Group(
            key=JOB_FEED.organization_field,
            aggregations=(
                Aggregation("jobsCount", AggregateOp.COUNT),
                Aggregation("activeJobs", AggregateOp.COUNT_IF, condition=Equals("status", "active")),
                Aggregation("totalViews", AggregateOp.SUM, "analytics.views"),
                Aggregation("totalApplications", AggregateOp.SUM, "analytics.applications"),
                Aggregation("avgViews", AggregateOp.AVG, "analytics.views"),
                Aggregation("avgSalary", AggregateOp.AVG, "salary.min"),
            ),
        ),
        Sort("jobsCount", DESCENDING),
        Limit(limit),
    ]


def build_location_insights_pipeline(
    tenant_id: Optional[str] = None,
    filters: Filters = None,
    limit: int = TOP_LOCATIONS_LIMIT,
) -> Pipeline:
    """Top (city, country) pairs by number of matching jobs."""
    limit = _check_limit(limit, "limit")
    match = _job_match(filters, tenant_id)
    return [
        match,
        Group(
            key={"city": "location.city", "country": "location.country"},
            aggregations=(
                Aggregation("jobsCount", AggregateOp.COUNT),
                Aggregation("remoteJobs", AggregateOp.COUNT_IF, "location.remote"),
                Aggregation("hybridJobs", AggregateOp.COUNT_IF, "location.hybrid"),
                Aggregation("avgSalary", AggregateOp.AVG, "salary.min"),
            ),
        ),
        Sort("jobsCount", DESCENDING),
        Limit(limit),
    ]


def build_skill_insights_pipeline(
    tenant_id: Optional[str] = None,
    filters: Filters = None,
    limit: int = TOP_SKILLS_LIMIT,
    percentage_basis: PercentageBasis = PercentageBasis.TOTAL,
) -> Pipeline:
    """
    Most requested skills across matching jobs.

    Row fields: _id (skill), count, relatedJobs (distinct job ids), percentage.
    """
    limit = _check_limit(limit, "limit")
    try:
        basis = PercentageBasis(percentage_basis)
    except ValueError:
        raise QueryBuildError(
            f"Unknown percentage basis {percentage_basis!r}",
            field="percentage_basis",
            value=percentage_basis,
        ) from None
    match = _job_match(filters, tenant_id)
    skills = JOB_FEED.skills_field
    return [
        match,
        Unwind(skills),
        Group(
            key=skills,
            aggregations=(
                Aggregation("count", AggregateOp.COUNT),
                Aggregation("relatedJobs", AggregateOp.ADD_TO_SET, "_id"),
            ),
        ),
        AddField("percentage", Percentage("count", basis)),
        Sort("count", DESCENDING),
        Limit(limit),
    ]


def build_catalog_statistics_pipeline(tenant_id: Optional[str] = None) -> Pipeline:
    """
    Training catalog statistics across all programs, published or not.

    Row fields: total, active, draft, published, totalEnrollments,
    totalViews, averageRating.
    """
    predicate = build_filter_predicate(
        None, schema=TRAINING_CATALOG, tenant_id=tenant_id, apply_default_scope=False
    )
    return [
        Match(predicate),
        Group(
            key=None,
            aggregations=(
                Aggregation("total", AggregateOp.COUNT),
                Aggregation("active", AggregateOp.COUNT_IF, condition=Equals("isActive", True)),
                Aggregation("draft", AggregateOp.COUNT_IF, condition=Equals("status", "draft")),
                Aggregation("published", AggregateOp.COUNT_IF, condition=Equals("status", "published")),
                Aggregation("totalEnrollments", AggregateOp.SUM, "analytics.enrollments"),
                Aggregation("totalViews", AggregateOp.SUM, "analytics.views"),
                Aggregation("averageRating", AggregateOp.AVG, "analytics.rating"),
            ),
        ),
    ]
