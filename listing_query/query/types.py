"""
Canonical types for the listing query translation layer.

Input specs (FilterSpec, SortSpec, PaginationSpec) describe what the caller
asked for. Predicate and PipelineStage nodes are engine-agnostic: an adapter
per storage engine (see mongo_adapter, memory_engine) turns them into
something executable.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from listing_query.common.errors import InvalidPaginationError

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50

ASCENDING = 1
DESCENDING = -1


# =============================================================================
# Input specs
# =============================================================================

@dataclass(frozen=True)
class FilterSpec:
    """
    User-chosen search/browse criteria before translation.

    Values are kept as supplied (strings, lists); normalizer.normalize_filters
    turns them into typed values.
    """
    search: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None          # jobType (job feed) / category (catalog)
    experience_level: Optional[str] = None  # experienceLevel / level
    amount_range: Optional[str] = None      # salary / price: "min-max" or "min+"
    tags: Optional[List[str]] = None

    @classmethod
    def from_mapping(cls, raw: Dict[str, Any], schema) -> "FilterSpec":
        """
        Build a FilterSpec from a raw, loosely-keyed mapping.

        Keys may be the schema's logical names ("jobType", "experience",
        "salaryRange", "priceRange", ...) or the attribute names of this class.
        Unrecognised keys are ignored. Values are not validated here.
        """
        values: Dict[str, Any] = {}
        for key, value in raw.items():
            attr = schema.filter_aliases.get(key)
            if attr is None and key in _FILTER_ATTRS:
                attr = key
            if attr is not None:
                values[attr] = value
        return cls(**values)


_FILTER_ATTRS = ("search", "location", "category", "experience_level", "amount_range", "tags")


@dataclass(frozen=True)
class SortSpec:
    """Logical sort key and order as chosen by the user."""
    sort_by: Optional[str] = None
    sort_order: str = "desc"


@dataclass(frozen=True)
class PaginationSpec:
    """
    Page-based pagination.

    Raises:
        InvalidPaginationError: page < 1 or limit outside [1, max_limit]
    """
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    max_limit: int = MAX_PAGE_SIZE

    def __post_init__(self):
        if not _is_int(self.page) or self.page < 1:
            raise InvalidPaginationError(
                f"page must be an integer >= 1, got {self.page!r}", field="page", value=self.page
            )
        if not _is_int(self.limit) or not 1 <= self.limit <= self.max_limit:
            raise InvalidPaginationError(
                f"limit must be an integer in [1, {self.max_limit}], got {self.limit!r}",
                field="limit",
                value=self.limit,
            )

    @property
    def skip(self) -> int:
        """Number of documents to skip before this page."""
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        """Number of pages needed for `total` documents."""
        return math.ceil(total / self.limit)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class RangeBounds:
    """Parsed numeric range. An absent bound is unbounded on that side."""
    min: Optional[int] = None
    max: Optional[int] = None


@dataclass(frozen=True)
class SortKey:
    """Physical sort field and direction (1 ascending, -1 descending)."""
    field: str
    direction: int
    is_fallback: bool = False


# =============================================================================
# Predicates
# =============================================================================

@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class Range:
    """Inclusive bounds: field >= min and/or field <= max."""
    field: str
    min: Optional[int] = None
    max: Optional[int] = None


@dataclass(frozen=True)
class RegexOr:
    """Case-insensitive substring match of `term` against any of `fields`."""
    fields: Tuple[str, ...]
    term: str


@dataclass(frozen=True)
class In:
    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Conjunction:
    children: Tuple["Predicate", ...] = ()


@dataclass(frozen=True)
class Disjunction:
    children: Tuple["Predicate", ...] = ()


Predicate = Union[Equals, Range, RegexOr, In, Conjunction, Disjunction]


# =============================================================================
# Pipeline stages
# =============================================================================

class AggregateOp(str, Enum):
    """Accumulator operators available inside a Group stage."""
    COUNT = "count"
    SUM = "sum"
    AVG = "avg"
    COUNT_IF = "count_if"
    ADD_TO_SET = "add_to_set"


@dataclass(frozen=True)
class Aggregation:
    """
    A named accumulator of a Group stage.

    COUNT takes no field. SUM, AVG and ADD_TO_SET read `field`. COUNT_IF counts
    documents where `field` is truthy, or where `condition` holds when given.
    """
    name: str
    op: AggregateOp
    field: Optional[str] = None
    condition: Optional[Equals] = None


class PercentageBasis(str, Enum):
    """
    Denominator used by a Percentage expression.

    GROUP reproduces the legacy per-group denominator: each row is divided by
    its own value, so every row reads 100. TOTAL divides by the sum of the
    field across all rows reaching the stage.
    """
    GROUP = "group"
    TOTAL = "total"


@dataclass(frozen=True)
class Percentage:
    """field / denominator * 100, denominator chosen by `basis`."""
    field: str
    basis: PercentageBasis = PercentageBasis.TOTAL


GroupKey = Union[None, str, Dict[str, str]]


@dataclass(frozen=True)
class Match:
    predicate: Predicate


@dataclass(frozen=True)
class Unwind:
    path: str


@dataclass(frozen=True)
class Group:
    key: GroupKey
    aggregations: Tuple[Aggregation, ...] = ()


@dataclass(frozen=True)
class AddField:
    name: str
    expression: Percentage


@dataclass(frozen=True)
class Sort:
    field: str
    direction: int = DESCENDING


@dataclass(frozen=True)
class Limit:
    count: int


PipelineStage = Union[Match, Unwind, Group, AddField, Sort, Limit]
Pipeline = List[PipelineStage]
