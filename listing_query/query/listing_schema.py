"""
Listing Schemas

Fixed logical -> physical field configuration for each listing feature:
    - JOB_FEED: public job board (job_posts collection)
    - TRAINING_CATALOG: training-program catalog (training_programs collection)

The sort tables are part of the interface contract with the remote API and
must stay stable.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from listing_query.query.types import Equals


@dataclass(frozen=True)
class ListingSchema:
    """Physical layout of one listing collection and its logical parameter names."""
    name: str

    # Free-text search / location substring matching
    search_fields: Tuple[str, ...]
    location_fields: Tuple[str, ...]

    # Categorical filters: (physical field, logical param name)
    category_field: str
    category_param: str
    experience_field: str
    experience_param: str

    # Range filter: physical numeric field, params are <range_param>Min/Max
    range_field: str
    range_param: str

    # Logical sort key -> physical field path
    sort_fields: Dict[str, str]

    # Predicates applied unless the caller overrides scope
    default_scope: Tuple[Equals, ...]

    tags_field: str = "tags"
    tenant_field: str = "tenantId"
    default_sort_field: str = "createdAt"
    default_page_size: int = 10

    # Raw filter key -> FilterSpec attribute
    filter_aliases: Dict[str, str] = field(default_factory=dict)

    # Analytics field paths (job feed only)
    skills_field: Optional[str] = None
    organization_field: Optional[str] = None

    def range_min_param(self) -> str:
        return f"{self.range_param}Min"

    def range_max_param(self) -> str:
        return f"{self.range_param}Max"

    def resolve_sort_field(self, sort_by: str) -> Optional[str]:
        """Physical field for a logical sort key, or None if unmapped."""
        return self.sort_fields.get(sort_by)


JOB_FEED_SORT_FIELDS: Dict[str, str] = {
    "title": "title",
    "company": "company.name",
    "location": "location.city",
    "salary": "salary.min",
    "createdAt": "createdAt",
    "views": "analytics.views",
    "applications": "analytics.applications",
}

TRAINING_CATALOG_SORT_FIELDS: Dict[str, str] = {
    "title": "title",
    "createdAt": "createdAt",
    "updatedAt": "updatedAt",
    "price": "price",
    "duration": "duration",
    "rating": "analytics.rating",
    "enrollments": "analytics.enrollments",
    "views": "analytics.views",
}


JOB_FEED = ListingSchema(
    name="job_feed",
    search_fields=("title", "description", "company.name", "requirements.skills"),
    location_fields=("location.city", "location.country"),
    category_field="jobType",
    category_param="jobType",
    experience_field="experienceLevel",
    experience_param="experienceLevel",
    range_field="salary.min",
    range_param="salary",
    sort_fields=JOB_FEED_SORT_FIELDS,
    default_scope=(Equals("status", "active"), Equals("visibility", "public")),
    default_page_size=10,
    filter_aliases={
        "search": "search",
        "location": "location",
        "jobType": "category",
        "experience": "experience_level",
        "experienceLevel": "experience_level",
        "salary": "amount_range",
        "salaryRange": "amount_range",
        "tags": "tags",
    },
    skills_field="requirements.skills",
    organization_field="company.name",
)

TRAINING_CATALOG = ListingSchema(
    name="training_catalog",
    search_fields=("title", "description", "shortDescription", "tags"),
    location_fields=(),
    category_field="category",
    category_param="category",
    experience_field="level",
    experience_param="level",
    range_field="price",
    range_param="price",
    sort_fields=TRAINING_CATALOG_SORT_FIELDS,
    default_scope=(Equals("isActive", True), Equals("isPublic", True)),
    default_page_size=12,
    filter_aliases={
        "search": "search",
        "category": "category",
        "level": "experience_level",
        "price": "amount_range",
        "priceRange": "amount_range",
        "tags": "tags",
    },
)

SCHEMAS: Dict[str, ListingSchema] = {
    JOB_FEED.name: JOB_FEED,
    TRAINING_CATALOG.name: TRAINING_CATALOG,
}


def get_schema(name: str) -> ListingSchema:
    """
    Look up a listing schema by name.

    Raises:
        KeyError: If no schema is registered under `name`
    """
    try:
        return SCHEMAS[name]
    except KeyError:
        raise KeyError(f"Unknown listing schema '{name}'. Known: {sorted(SCHEMAS)}") from None
