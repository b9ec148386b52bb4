"""
Unit tests for ListingSearchService.

Most tests run against InMemoryListingRepository seeded with the
conftest sample jobs; a few use a MagicMock repository to check that
invalid input never reaches storage.
"""

from unittest.mock import MagicMock

import pytest
from bson import ObjectId

from listing_query.common.errors import (
    InvalidPaginationError,
    MalformedRangeError,
    UnsupportedFilterError,
)
from listing_query.common.listing_config import ListingQueryConfig
from listing_query.common.repositories.memory_repository import InMemoryListingRepository
from listing_query.query.listing_schema import TRAINING_CATALOG
from listing_query.query.types import PercentageBasis, SortSpec
from listing_query.services.listing_search_service import ListingPage, ListingSearchService


@pytest.fixture
def service(memory_repository):
    return ListingSearchService(memory_repository, config=ListingQueryConfig())


@pytest.fixture
def mock_repository():
    repo = MagicMock()
    repo.find.return_value = []
    repo.count.return_value = 0
    repo.aggregate.return_value = []
    return repo


class TestSearch:
    """Tests for ListingSearchService.search."""

    def test_default_page(self, service):
        page = service.search()

        assert isinstance(page, ListingPage)
        assert page.total == 4
        assert page.page == 1
        assert page.limit == 10
        assert page.pages == 1
        assert page.has_next is False
        assert page.has_prev is False
        # Newest first
        assert page.items[0]["title"] == "Platform Engineer"

    def test_object_ids_stringified(self, service):
        page = service.search()

        assert all(isinstance(item["_id"], str) for item in page.items)

    def test_filters_and_sort(self, service):
        page = service.search(
            {"search": "engineer"},
            sort=SortSpec(sort_by="salary", sort_order="asc"),
        )

        assert [item["title"] for item in page.items] == ["Senior Go Engineer", "Platform Engineer"]
        assert page.sort_fallback is False

    def test_pagination_metadata(self, service):
        page = service.search(page=2, limit=3)

        assert page.total == 4
        assert page.pages == 2
        assert len(page.items) == 1
        assert page.has_next is False
        assert page.has_prev is True

    def test_skip_passed_to_repository(self, mock_repository):
        service = ListingSearchService(mock_repository, config=ListingQueryConfig())
        mock_repository.count.return_value = 95

        page = service.search(page=2, limit=10)

        kwargs = mock_repository.find.call_args.kwargs
        assert kwargs["skip"] == 10
        assert kwargs["limit"] == 10
        assert page.pages == 10
        assert page.has_next is True

    def test_unknown_sort_key_flagged(self, service):
        page = service.search(sort=SortSpec(sort_by="popularity", sort_order="asc"))

        assert page.sort_fallback is True
        assert page.items[0]["title"] == "Platform Engineer"

    def test_tenant(self, service):
        page = service.search(tenant_id="t2")

        assert [item["title"] for item in page.items] == ["Platform Engineer"]

    def test_invalid_input_never_queries(self, mock_repository):
        service = ListingSearchService(mock_repository, config=ListingQueryConfig())

        with pytest.raises(MalformedRangeError):
            service.search({"salary": "90-10"})
        with pytest.raises(InvalidPaginationError):
            service.search(limit=51)

        mock_repository.find.assert_not_called()
        mock_repository.count.assert_not_called()

    def test_configured_max_page_size(self, service):
        service.config = ListingQueryConfig(max_page_size=5, default_page_size=5)

        with pytest.raises(InvalidPaginationError):
            service.search(limit=6)
        assert service.search().limit == 5

    def test_configured_default_page_size(self, memory_repository, monkeypatch):
        monkeypatch.setenv("LISTING_DEFAULT_PAGE_SIZE", "25")
        service = ListingSearchService(memory_repository, config=ListingQueryConfig.from_env())

        assert service.search().limit == 25

    def test_default_page_size_capped_by_max(self, service):
        service.config = ListingQueryConfig(max_page_size=3)

        page = service.search()

        assert page.limit == 3
        assert page.pages == 2

    def test_catalog_keeps_schema_page_size(self):
        service = ListingSearchService(
            InMemoryListingRepository(), schema=TRAINING_CATALOG, config=ListingQueryConfig()
        )

        assert service.search().limit == 12

    def test_to_dict(self, service):
        data = service.search(limit=2).to_dict()

        assert data["pagination"] == {
            "page": 1,
            "limit": 2,
            "total": 4,
            "pages": 2,
            "hasNext": True,
            "hasPrev": False,
        }
        assert data["sortFallback"] is False

    def test_to_dict_reports_sort_fallback(self, service):
        data = service.search(sort=SortSpec(sort_by="popularity")).to_dict()

        assert data["sortFallback"] is True


class TestListings:
    """Tests for featured / urgent / company / location listings."""

    def test_featured(self, service):
        assert [job["title"] for job in service.list_featured()] == ["Senior Go Engineer"]

    def test_urgent(self, service):
        assert [job["title"] for job in service.list_urgent()] == ["Backend Developer"]

    def test_by_company(self, service):
        assert [job["title"] for job in service.list_by_company("c2")] == ["Backend Developer"]

    def test_by_location(self, service):
        jobs = service.list_by_location("berlin", limit=2)

        assert [job["title"] for job in jobs] == ["Platform Engineer", "Data Analyst"]

    def test_catalog_has_no_featured_jobs(self):
        service = ListingSearchService(
            InMemoryListingRepository(), schema=TRAINING_CATALOG, config=ListingQueryConfig()
        )

        with pytest.raises(UnsupportedFilterError):
            service.list_featured()


class TestInsights:
    """Tests for statistics and insight shaping."""

    def test_statistics(self, service):
        stats = service.get_statistics()

        assert "_id" not in stats
        assert stats["total"] == 4
        assert stats["totalViews"] == 170

    def test_statistics_defaults_when_empty(self, service):
        stats = service.get_statistics(tenant_id="nobody")

        assert stats["total"] == 0
        assert stats["avgViews"] == 0

    def test_company_insights(self, service):
        insights = service.get_company_insights()

        assert insights[0]["name"] == "Acme"
        assert insights[0]["jobsCount"] == 3
        assert "_id" not in insights[0]

    def test_location_insights(self, service):
        insights = service.get_location_insights()

        assert insights[0]["city"] == "Berlin"
        assert insights[0]["country"] == "Germany"
        assert insights[1]["remoteJobs"] == 1

    def test_skill_insights(self, service):
        insights = service.get_skill_insights()

        go = insights[0]
        assert go["name"] == "Go"
        assert go["count"] == 3
        assert go["relatedJobs"] == 3
        assert all(isinstance(job_id, str) for job_id in go["relatedJobIds"])
        assert sum(row["percentage"] for row in insights) == pytest.approx(100.0)

    def test_skill_insights_group_basis(self, service):
        insights = service.get_skill_insights(percentage_basis=PercentageBasis.GROUP)

        assert {row["percentage"] for row in insights} == {100.0}

    def test_skill_basis_from_config(self, memory_repository):
        config = ListingQueryConfig(skill_percentage_basis=PercentageBasis.GROUP)
        service = ListingSearchService(memory_repository, config=config)

        assert service.get_skill_insights()[0]["percentage"] == 100.0

    def test_top_limits_from_config(self, memory_repository):
        config = ListingQueryConfig(top_companies=1, top_skills=2)
        service = ListingSearchService(memory_repository, config=config)

        assert len(service.get_company_insights()) == 1
        assert len(service.get_skill_insights()) == 2

    def test_catalog_statistics(self):
        programs = [
            {"_id": ObjectId(), "isActive": True, "status": "published",
             "analytics": {"enrollments": 10, "views": 100, "rating": 4.0}},
            {"_id": ObjectId(), "isActive": False, "status": "draft",
             "analytics": {"enrollments": 0, "views": 5, "rating": 5.0}},
        ]
        service = ListingSearchService(
            InMemoryListingRepository(programs), schema=TRAINING_CATALOG, config=ListingQueryConfig()
        )

        stats = service.get_statistics()

        assert stats == {
            "total": 2,
            "active": 1,
            "draft": 1,
            "published": 1,
            "totalEnrollments": 10,
            "totalViews": 105,
            "averageRating": 4.5,
        }

    def test_catalog_statistics_reject_filters(self):
        service = ListingSearchService(
            InMemoryListingRepository(), schema=TRAINING_CATALOG, config=ListingQueryConfig()
        )

        with pytest.raises(UnsupportedFilterError):
            service.get_statistics(filters={"search": "python"})

    def test_catalog_has_no_skill_insights(self):
        service = ListingSearchService(
            InMemoryListingRepository(), schema=TRAINING_CATALOG, config=ListingQueryConfig()
        )

        with pytest.raises(UnsupportedFilterError):
            service.get_skill_insights()


class TestBuildRemoteQuery:
    """Tests for build_remote_query."""

    def test_search_and_salary_scenario(self, mock_repository):
        service = ListingSearchService(mock_repository, config=ListingQueryConfig())

        query = service.build_remote_query(
            {"search": "engineer", "salaryRange": "100000+"},
            sort=SortSpec("salary", "desc"),
            page=1,
            limit=10,
        )

        assert query == "page=1&limit=10&search=engineer&salaryMin=100000&sortBy=salary&sortOrder=desc"
        mock_repository.find.assert_not_called()

    def test_catalog_default_limit(self, mock_repository):
        service = ListingSearchService(mock_repository, schema=TRAINING_CATALOG, config=ListingQueryConfig())

        assert service.build_remote_query() == "page=1&limit=12"

    def test_round_trip_above_default_max(self, mock_repository):
        service = ListingSearchService(mock_repository, config=ListingQueryConfig(max_page_size=100))

        query = service.build_remote_query({"search": "x"}, limit=80)
        parsed = service.parse_remote_query(query)

        assert parsed.pagination.limit == 80
        assert parsed.filters.search == "x"
