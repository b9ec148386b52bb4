"""
MongoDB translation adapter.

Converts the engine-agnostic Predicate / SortKey / Pipeline structures into
pymongo syntax. This is the only module that knows MongoDB operator names.

Usage:
    predicate = build_filter_predicate(filters)
    collection.find(to_mongo_filter(predicate)).sort(to_mongo_sort(sort_key))
    collection.aggregate(to_mongo_pipeline(build_skill_insights_pipeline()))
"""

import re
from typing import Any, Dict, List

from pymongo import ASCENDING, DESCENDING

from listing_query.query.types import (
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
    PipelineStage,
    Range,
    RegexOr,
    Sort,
    SortKey,
    Unwind,
)

# Scratch field holding the grand total for PercentageBasis.TOTAL
TOTAL_FIELD = "_percentageTotal"


def _ref(path: str) -> str:
    return f"${path}"


def _regex(term: str) -> Dict[str, Any]:
    # Literal substring match; user input never becomes regex syntax
    return {"$regex": re.escape(term), "$options": "i"}


def to_mongo_filter(predicate) -> Dict[str, Any]:
    """
    Translate a predicate tree into a MongoDB query document.

    Conjunctions follow the same rule as the dashboard job list: no clause
    gives {}, one clause is used directly, several are combined with $and.
    """
    if isinstance(predicate, Equals):
        return {predicate.field: predicate.value}

    if isinstance(predicate, Range):
        bounds: Dict[str, Any] = {}
        if predicate.min is not None:
            bounds["$gte"] = predicate.min
        if predicate.max is not None:
            bounds["$lte"] = predicate.max
        return {predicate.field: bounds}

    if isinstance(predicate, RegexOr):
        return {"$or": [{field: _regex(predicate.term)} for field in predicate.fields]}

    if isinstance(predicate, In):
        return {predicate.field: {"$in": list(predicate.values)}}

    if isinstance(predicate, Conjunction):
        and_conditions = [to_mongo_filter(child) for child in predicate.children]
        if not and_conditions:
            return {}
        if len(and_conditions) == 1:
            return and_conditions[0]
        return {"$and": and_conditions}

    if isinstance(predicate, Disjunction):
        return {"$or": [to_mongo_filter(child) for child in predicate.children]}

    raise TypeError(f"Unsupported predicate node: {type(predicate).__name__}")


def to_mongo_sort(sort_key: SortKey) -> List[tuple]:
    """Sort spec as pymongo (field, direction) tuples."""
    direction = ASCENDING if sort_key.direction == ASCENDING else DESCENDING
    return [(sort_key.field, direction)]


def _group_id(key: GroupKey) -> Any:
    if key is None:
        return None
    if isinstance(key, str):
        return _ref(key)
    return {name: _ref(path) for name, path in key.items()}


def _accumulator(aggregation: Aggregation) -> Dict[str, Any]:
    op = aggregation.op
    if op == AggregateOp.COUNT:
        return {"$sum": 1}
    if op == AggregateOp.SUM:
        return {"$sum": _ref(aggregation.field)}
    if op == AggregateOp.AVG:
        return {"$avg": _ref(aggregation.field)}
    if op == AggregateOp.ADD_TO_SET:
        return {"$addToSet": _ref(aggregation.field)}
    if op == AggregateOp.COUNT_IF:
        if aggregation.condition is not None:
            test = {"$eq": [_ref(aggregation.condition.field), aggregation.condition.value]}
        else:
            test = _ref(aggregation.field)
        return {"$sum": {"$cond": [test, 1, 0]}}
    raise TypeError(f"Unsupported aggregate op: {op!r}")


def _percentage_stages(name: str, expression: Percentage) -> List[Dict[str, Any]]:
    count = _ref(expression.field)
    if expression.basis == PercentageBasis.GROUP:
        # Legacy form: $sum over a single value is the value itself
        return [{"$addFields": {name: {"$multiply": [{"$divide": [count, {"$sum": count}]}, 100]}}}]

    return [
        {"$setWindowFields": {"output": {TOTAL_FIELD: {"$sum": count}}}},
        {"$addFields": {name: {"$multiply": [{"$divide": [count, _ref(TOTAL_FIELD)]}, 100]}}},
        {"$unset": TOTAL_FIELD},
    ]


def to_mongo_stages(stage: PipelineStage) -> List[Dict[str, Any]]:
    """Translate one pipeline stage. Most stages map to exactly one MongoDB stage."""
    if isinstance(stage, Match):
        return [{"$match": to_mongo_filter(stage.predicate)}]

    if isinstance(stage, Unwind):
        return [{"$unwind": _ref(stage.path)}]

    if isinstance(stage, Group):
        group: Dict[str, Any] = {"_id": _group_id(stage.key)}
        for aggregation in stage.aggregations:
            group[aggregation.name] = _accumulator(aggregation)
        return [{"$group": group}]

    if isinstance(stage, AddField):
        return _percentage_stages(stage.name, stage.expression)

    if isinstance(stage, Sort):
        return [{"$sort": {stage.field: stage.direction}}]

    if isinstance(stage, Limit):
        return [{"$limit": stage.count}]

    raise TypeError(f"Unsupported pipeline stage: {type(stage).__name__}")


def to_mongo_pipeline(pipeline: Pipeline) -> List[Dict[str, Any]]:
    """Translate a pipeline, preserving stage order."""
    stages: List[Dict[str, Any]] = []
    for stage in pipeline:
        stages.extend(to_mongo_stages(stage))
    return stages
