"""
In-memory evaluation of predicates and pipelines.

Executes the same Predicate / Pipeline structures the MongoDB adapter
translates, over plain lists of dicts. Used by InMemoryListingRepository and
by tests that need query results without a database.

Semantics follow MongoDB for the operators in use:
    - dotted paths walk nested dicts
    - Equals/In against an array field match on membership
    - RegexOr is a case-insensitive substring test
    - Unwind drops documents whose array is missing or empty
    - sorting a field of mixed types orders by type first (null, numbers,
      strings, ...) as MongoDB does
"""

import copy
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from bson import ObjectId

from listing_query.query.types import (
    ASCENDING,
    AddField,
    AggregateOp,
    Aggregation,
    Conjunction,
    Disjunction,
    Equals,
    Group,
    GroupKey,
    In,
    Limit,
    Match,
    Percentage,
    PercentageBasis,
    Pipeline,
    Range,
    RegexOr,
    Sort,
    SortKey,
    Unwind,
)

_MISSING = object()


def get_path(document: Dict[str, Any], path: str, default: Any = None) -> Any:
    """Value at a dotted path, or `default` when any segment is missing."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def _values(document: Dict[str, Any], path: str) -> List[Any]:
    value = get_path(document, path, _MISSING)
    if value is _MISSING:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _contains(value: Any, needle: str) -> bool:
    return isinstance(value, str) and needle in value.lower()


def matches(document: Dict[str, Any], predicate) -> bool:
    """True if `document` satisfies `predicate`."""
    if isinstance(predicate, Equals):
        value = get_path(document, predicate.field, _MISSING)
        if isinstance(value, list):
            return predicate.value in value
        return value is not _MISSING and value == predicate.value

    if isinstance(predicate, Range):
        for value in _values(document, predicate.field):
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                continue
            if predicate.min is not None and value < predicate.min:
                continue
            if predicate.max is not None and value > predicate.max:
                continue
            return True
        return False

    if isinstance(predicate, RegexOr):
        needle = predicate.term.lower()
        return any(
            _contains(value, needle)
            for field in predicate.fields
            for value in _values(document, field)
        )

    if isinstance(predicate, In):
        return any(value in predicate.values for value in _values(document, predicate.field))

    if isinstance(predicate, Conjunction):
        return all(matches(document, child) for child in predicate.children)

    if isinstance(predicate, Disjunction):
        return any(matches(document, child) for child in predicate.children)

    raise TypeError(f"Unsupported predicate node: {type(predicate).__name__}")


# MongoDB's cross-type sort order: null, numbers, strings, objects, arrays,
# binary, ObjectId, booleans, dates
_TYPE_RANKS = (
    (bool, 7),  # before int, bool is a subclass
    ((int, float), 1),
    (str, 2),
    (dict, 3),
    (list, 4),
    (bytes, 5),
    (ObjectId, 6),
    (datetime, 8),
)


def _type_rank(value: Any) -> int:
    for types, rank in _TYPE_RANKS:
        if isinstance(value, types):
            return rank
    return 9


def _sort_value(value: Any):
    if value is None:
        return (0, 0)
    rank = _type_rank(value)
    if rank in (3, 4, 9):
        # No natural ordering within these types; keep them comparable
        return (rank, repr(value))
    return (rank, value)


def sort_documents(documents: Iterable[Dict[str, Any]], field: str, direction: int) -> List[Dict[str, Any]]:
    """Stable sort by one field."""
    return sorted(
        documents,
        key=lambda doc: _sort_value(get_path(doc, field)),
        reverse=direction != ASCENDING,
    )


def run_find(
    documents: Sequence[Dict[str, Any]],
    predicate,
    sort_key: Optional[SortKey] = None,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Filter, sort and slice documents like collection.find()."""
    found = [doc for doc in documents if matches(doc, predicate)]
    if sort_key is not None:
        found = sort_documents(found, sort_key.field, sort_key.direction)
    end = None if limit is None else skip + limit
    return found[skip:end]


def count(documents: Sequence[Dict[str, Any]], predicate) -> int:
    return sum(1 for doc in documents if matches(doc, predicate))


# =============================================================================
# Pipeline stages
# =============================================================================

def _unwind(documents: List[Dict[str, Any]], path: str) -> List[Dict[str, Any]]:
    parent_path, _, leaf = path.rpartition(".")
    result = []
    for doc in documents:
        values = get_path(doc, path)
        if not isinstance(values, list):
            values = [] if values is None else [values]
        for value in values:
            row = copy.deepcopy(doc)
            parent = get_path(row, parent_path) if parent_path else row
            parent[leaf] = value
            result.append(row)
    return result


def _group_id(document: Dict[str, Any], key: GroupKey) -> Any:
    if key is None:
        return None
    if isinstance(key, str):
        return get_path(document, key)
    return {name: get_path(document, path) for name, path in key.items()}


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _accumulate(aggregation: Aggregation, members: List[Dict[str, Any]]) -> Any:
    op = aggregation.op
    if op == AggregateOp.COUNT:
        return len(members)

    if op == AggregateOp.COUNT_IF:
        if aggregation.condition is not None:
            return sum(1 for doc in members if matches(doc, aggregation.condition))
        return sum(1 for doc in members if get_path(doc, aggregation.field))

    if op == AggregateOp.ADD_TO_SET:
        seen: List[Any] = []
        for doc in members:
            value = get_path(doc, aggregation.field, _MISSING)
            if value is not _MISSING and value not in seen:
                seen.append(value)
        return seen

    numbers = [v for v in (get_path(doc, aggregation.field) for doc in members) if _is_number(v)]
    if op == AggregateOp.SUM:
        return sum(numbers)
    if op == AggregateOp.AVG:
        return sum(numbers) / len(numbers) if numbers else None

    raise TypeError(f"Unsupported aggregate op: {op!r}")


def _group(documents: List[Dict[str, Any]], stage: Group) -> List[Dict[str, Any]]:
    buckets: Dict[Any, List[Dict[str, Any]]] = {}
    keys: Dict[Any, Any] = {}
    for doc in documents:
        group_id = _group_id(doc, stage.key)
        frozen = _freeze(group_id)
        if frozen not in buckets:
            buckets[frozen] = []
            keys[frozen] = group_id
        buckets[frozen].append(doc)

    rows = []
    for frozen, members in buckets.items():
        row: Dict[str, Any] = {"_id": keys[frozen]}
        for aggregation in stage.aggregations:
            row[aggregation.name] = _accumulate(aggregation, members)
        rows.append(row)
    return rows


def _add_percentage(rows: List[Dict[str, Any]], name: str, expression: Percentage) -> List[Dict[str, Any]]:
    total = sum(v for v in (row.get(expression.field) for row in rows) if _is_number(v))
    result = []
    for row in rows:
        value = row.get(expression.field) or 0
        denominator = value if expression.basis == PercentageBasis.GROUP else total
        row = dict(row)
        row[name] = value / denominator * 100 if denominator else None
        result.append(row)
    return result


def run_pipeline(documents: Sequence[Dict[str, Any]], pipeline: Pipeline) -> List[Dict[str, Any]]:
    """Run pipeline stages in order and return the resulting rows."""
    rows: List[Dict[str, Any]] = list(documents)
    for stage in pipeline:
        if isinstance(stage, Match):
            rows = [doc for doc in rows if matches(doc, stage.predicate)]
        elif isinstance(stage, Unwind):
            rows = _unwind(rows, stage.path)
        elif isinstance(stage, Group):
            rows = _group(rows, stage)
        elif isinstance(stage, AddField):
            rows = _add_percentage(rows, stage.name, stage.expression)
        elif isinstance(stage, Sort):
            rows = sort_documents(rows, stage.field, stage.direction)
        elif isinstance(stage, Limit):
            rows = rows[: stage.count]
        else:
            raise TypeError(f"Unsupported pipeline stage: {type(stage).__name__}")
    return rows
