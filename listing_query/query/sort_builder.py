"""
Sort building.

Maps a logical sort key ("salary", "views", ...) to its physical field path
through the schema's fixed table. Unknown keys are not an error: they fall
back to the creation timestamp, descending, and the returned SortKey is
flagged with is_fallback=True.
"""

import logging
from typing import Optional

from listing_query.query.listing_schema import JOB_FEED, ListingSchema
from listing_query.query.types import ASCENDING, DESCENDING, SortKey, SortSpec

logger = logging.getLogger(__name__)


def sort_direction(sort_order: Optional[str]) -> int:
    """'asc' (any case) sorts ascending; everything else sorts descending."""
    if isinstance(sort_order, str) and sort_order.strip().lower() == "asc":
        return ASCENDING
    return DESCENDING


def build_sort(
    sort_by: Optional[str],
    sort_order: Optional[str] = "desc",
    schema: ListingSchema = JOB_FEED,
) -> SortKey:
    """
    Resolve a logical sort key.

    Args:
        sort_by: Logical key; None selects the default sort
        sort_order: "asc" or "desc"
        schema: Listing schema holding the sort table

    Returns:
        SortKey(field, direction, is_fallback)
    """
    if sort_by is None:
        return SortKey(field=schema.default_sort_field, direction=DESCENDING)

    physical = schema.resolve_sort_field(sort_by)
    if physical is None:
        logger.info(
            f"Unknown sort key '{sort_by}' for {schema.name}, "
            f"falling back to {schema.default_sort_field} desc"
        )
        return SortKey(field=schema.default_sort_field, direction=DESCENDING, is_fallback=True)

    return SortKey(field=physical, direction=sort_direction(sort_order))


def build_sort_from_spec(sort: Optional[SortSpec], schema: ListingSchema = JOB_FEED) -> SortKey:
    """build_sort for an optional SortSpec."""
    if sort is None:
        return build_sort(None, schema=schema)
    return build_sort(sort.sort_by, sort.sort_order, schema=schema)
