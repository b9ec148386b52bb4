"""
Unit tests for MongoDB translation.
"""

import pytest
from pymongo import ASCENDING, DESCENDING

from listing_query.query.mongo_adapter import (
    TOTAL_FIELD,
    to_mongo_filter,
    to_mongo_pipeline,
    to_mongo_sort,
)
from listing_query.query.pipeline_builder import (
    build_company_insights_pipeline,
    build_location_insights_pipeline,
    build_skill_insights_pipeline,
    build_statistics_pipeline,
)
from listing_query.query.query_builder import build_filter_predicate
from listing_query.query.types import (
    Aggregation,
    AggregateOp,
    Conjunction,
    Disjunction,
    Equals,
    Group,
    In,
    PercentageBasis,
    Range,
    RegexOr,
    SortKey,
)

JOB_SCOPE = {"$and": [{"status": "active"}, {"visibility": "public"}]}


class TestToMongoFilter:
    """Tests for to_mongo_filter."""

    def test_equals(self):
        assert to_mongo_filter(Equals("status", "active")) == {"status": "active"}

    def test_range_both_bounds(self):
        assert to_mongo_filter(Range("salary.min", 1, 2)) == {"salary.min": {"$gte": 1, "$lte": 2}}

    def test_range_lower_only(self):
        assert to_mongo_filter(Range("salary.min", min=5)) == {"salary.min": {"$gte": 5}}

    def test_regex_or(self):
        assert to_mongo_filter(RegexOr(("title", "description"), "go")) == {
            "$or": [
                {"title": {"$regex": "go", "$options": "i"}},
                {"description": {"$regex": "go", "$options": "i"}},
            ]
        }

    def test_regex_escapes_input(self):
        """User input is matched literally."""
        query = to_mongo_filter(RegexOr(("title",), "c++ (lead)"))

        assert query["$or"][0]["title"]["$regex"] == r"c\+\+\ \(lead\)"

    def test_in(self):
        assert to_mongo_filter(In("tags", ("a", "b"))) == {"tags": {"$in": ["a", "b"]}}

    def test_empty_conjunction(self):
        assert to_mongo_filter(Conjunction(())) == {}

    def test_single_child_conjunction_unwrapped(self):
        assert to_mongo_filter(Conjunction((Equals("a", 1),))) == {"a": 1}

    def test_disjunction(self):
        assert to_mongo_filter(Disjunction((Equals("a", 1), Equals("b", 2)))) == {
            "$or": [{"a": 1}, {"b": 2}]
        }

    def test_default_scope_only(self):
        assert to_mongo_filter(build_filter_predicate({})) == JOB_SCOPE

    def test_search_and_salary_scenario(self):
        query = to_mongo_filter(build_filter_predicate({"search": "engineer", "salary": "100000+"}))

        assert query == {
            "$and": [
                {
                    "$or": [
                        {"title": {"$regex": "engineer", "$options": "i"}},
                        {"description": {"$regex": "engineer", "$options": "i"}},
                        {"company.name": {"$regex": "engineer", "$options": "i"}},
                        {"requirements.skills": {"$regex": "engineer", "$options": "i"}},
                    ]
                },
                {"salary.min": {"$gte": 100000}},
                JOB_SCOPE,
            ]
        }

    def test_unknown_node(self):
        with pytest.raises(TypeError):
            to_mongo_filter({"status": "active"})


class TestToMongoSort:
    """Tests for to_mongo_sort."""

    def test_directions(self):
        assert to_mongo_sort(SortKey("salary.min", 1)) == [("salary.min", ASCENDING)]
        assert to_mongo_sort(SortKey("createdAt", -1, is_fallback=True)) == [("createdAt", DESCENDING)]


class TestToMongoPipeline:
    """Tests for to_mongo_pipeline."""

    def test_statistics(self):
        stages = to_mongo_pipeline(build_statistics_pipeline(tenant_id="t1"))

        assert stages[0] == {"$match": {"$and": [{"tenantId": "t1"}, JOB_SCOPE]}}
        group = stages[1]["$group"]
        assert group["_id"] is None
        assert group["total"] == {"$sum": 1}
        assert group["totalViews"] == {"$sum": "$analytics.views"}
        assert group["featured"] == {"$sum": {"$cond": ["$featured", 1, 0]}}
        assert group["avgApplications"] == {"$avg": "$analytics.applications"}

    def test_company_insights(self):
        stages = to_mongo_pipeline(build_company_insights_pipeline())

        assert stages[1]["$group"]["_id"] == "$company.name"
        assert stages[1]["$group"]["activeJobs"] == {
            "$sum": {"$cond": [{"$eq": ["$status", "active"]}, 1, 0]}
        }
        assert stages[2:] == [{"$sort": {"jobsCount": -1}}, {"$limit": 10}]

    def test_location_group_key(self):
        stages = to_mongo_pipeline(build_location_insights_pipeline())

        assert stages[1]["$group"]["_id"] == {"city": "$location.city", "country": "$location.country"}

    def test_skill_insights_total_basis(self):
        stages = to_mongo_pipeline(build_skill_insights_pipeline())

        assert stages[1] == {"$unwind": "$requirements.skills"}
        assert stages[2] == {
            "$group": {
                "_id": "$requirements.skills",
                "count": {"$sum": 1},
                "relatedJobs": {"$addToSet": "$_id"},
            }
        }
        assert stages[3] == {"$setWindowFields": {"output": {TOTAL_FIELD: {"$sum": "$count"}}}}
        assert stages[4] == {
            "$addFields": {"percentage": {"$multiply": [{"$divide": ["$count", f"${TOTAL_FIELD}"]}, 100]}}
        }
        assert stages[5] == {"$unset": TOTAL_FIELD}
        assert stages[6:] == [{"$sort": {"count": -1}}, {"$limit": 20}]

    def test_skill_insights_group_basis(self):
        """Legacy form divides count by a sum inside the same row."""
        stages = to_mongo_pipeline(build_skill_insights_pipeline(percentage_basis=PercentageBasis.GROUP))

        assert stages[3] == {
            "$addFields": {"percentage": {"$multiply": [{"$divide": ["$count", {"$sum": "$count"}]}, 100]}}
        }
        assert len(stages) == 6

    def test_add_to_set(self):
        stages = to_mongo_pipeline([
            Group("jobType", (Aggregation("ids", AggregateOp.ADD_TO_SET, "_id"),))
        ])

        assert stages == [{"$group": {"_id": "$jobType", "ids": {"$addToSet": "$_id"}}}]

    def test_unknown_stage(self):
        with pytest.raises(TypeError):
            to_mongo_pipeline([{"$match": {}}])
