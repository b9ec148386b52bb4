"""
Filter normalization.

Parses raw, stringly-typed filter fields into typed values:
    - range strings ("50000-80000", "100+") -> RangeBounds
    - free text -> trimmed string, blank treated as absent
    - tag arrays -> list of non-blank strings

Nothing here degrades gracefully: malformed input raises a QueryBuildError
subclass before any query artifact exists.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Union

from listing_query.common.errors import (
    MalformedRangeError,
    TypeMismatchError,
    UnsupportedFilterError,
)
from listing_query.query.listing_schema import JOB_FEED, ListingSchema
from listing_query.query.types import FilterSpec, RangeBounds

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"^\d+$")


@dataclass(frozen=True)
class NormalizedFilters:
    """Validated filter values. None means the filter is absent."""
    search: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    experience_level: Optional[str] = None
    amount_range: Optional[RangeBounds] = None
    tags: Optional[List[str]] = None


def _parse_bound(text: str, raw: str, field: str) -> int:
    text = text.strip()
    if not _DIGITS.match(text):
        raise MalformedRangeError(
            f"Range bound '{text}' in '{raw}' is not a non-negative integer",
            field=field,
            value=raw,
        )
    return int(text)


def parse_range(value: Optional[str], field: str = "range") -> Optional[RangeBounds]:
    """
    Parse a range string.

    Accepted shapes:
        "min-max"  -> RangeBounds(min, max), requires min <= max
        "min+"     -> RangeBounds(min, None)
        None / ""  -> None (no range predicate at all)

    Raises:
        TypeMismatchError: value is not a string
        MalformedRangeError: any other shape, non-numeric bounds, min > max
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeMismatchError(
            f"{field} must be a range string, got {type(value).__name__}",
            field=field,
            value=value,
        )

    raw = value.strip()
    if not raw:
        return None

    if "-" in raw:
        low_text, high_text = raw.split("-", 1)
        low = _parse_bound(low_text, raw, field)
        high = _parse_bound(high_text, raw, field)
        if low > high:
            raise MalformedRangeError(
                f"Range '{raw}' has min {low} greater than max {high}",
                field=field,
                value=raw,
            )
        return RangeBounds(min=low, max=high)

    if raw.endswith("+"):
        return RangeBounds(min=_parse_bound(raw[:-1], raw, field), max=None)

    raise MalformedRangeError(
        f"Range '{raw}' must look like 'min-max' or 'min+'",
        field=field,
        value=raw,
    )


def normalize_text(value: Any, field: str) -> Optional[str]:
    """Trim a free-text filter. Blank strings are treated as absent."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeMismatchError(
            f"{field} must be a string, got {type(value).__name__}",
            field=field,
            value=value,
        )
    text = value.strip()
    return text or None


def validate_array(value: Any, field: str) -> Optional[List[str]]:
    """
    Validate an array-typed filter.

    A bare string is rejected rather than split: the caller must send a list.
    Blank elements are dropped; an empty result is treated as absent.
    """
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise TypeMismatchError(
            f"{field} must be an array, got {type(value).__name__}",
            field=field,
            value=value,
        )

    items = []
    for item in value:
        if not isinstance(item, str):
            raise TypeMismatchError(
                f"{field} elements must be strings, got {type(item).__name__}",
                field=field,
                value=value,
            )
        item = item.strip()
        if item:
            items.append(item)
    return items or None


def normalize_filters(
    filters: Union[FilterSpec, Mapping[str, Any], None],
    schema: ListingSchema = JOB_FEED,
) -> NormalizedFilters:
    """
    Validate every filter field for a listing schema.

    Args:
        filters: FilterSpec, raw mapping (logical or attribute keys) or None
        schema: Target listing schema

    Returns:
        NormalizedFilters with typed values

    Raises:
        QueryBuildError subclass on the first invalid field
    """
    if filters is None:
        return NormalizedFilters()
    if not isinstance(filters, FilterSpec):
        if not isinstance(filters, Mapping):
            raise TypeMismatchError(
                f"filters must be a mapping, got {type(filters).__name__}",
                field="filters",
                value=filters,
            )
        filters = FilterSpec.from_mapping(filters, schema)

    normalized = NormalizedFilters(
        search=normalize_text(filters.search, "search"),
        location=normalize_text(filters.location, "location"),
        category=normalize_text(filters.category, schema.category_param),
        experience_level=normalize_text(filters.experience_level, schema.experience_param),
        amount_range=parse_range(filters.amount_range, schema.range_param),
        tags=validate_array(filters.tags, "tags"),
    )

    if normalized.location is not None and not schema.location_fields:
        raise UnsupportedFilterError(
            f"Listing '{schema.name}' does not support a location filter",
            field="location",
            value=normalized.location,
        )

    logger.debug(f"Normalized filters for {schema.name}: {normalized}")
    return normalized
