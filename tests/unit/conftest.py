"""
Global fixtures for all unit tests.

This conftest provides autouse fixtures that prevent real external service calls:
- MongoDB connection attempts (would hang on server selection per test)
- Environment variable isolation (prevents real URIs and settings leaking in)

These fixtures apply automatically to ALL tests in tests/unit/.
"""

import pytest
from unittest.mock import patch, MagicMock

from bson import ObjectId

from listing_query.common.config import Config
from listing_query.common.repositories import reset_listing_repository
from listing_query.common.repositories.atlas_repository import AtlasListingRepository
from listing_query.common.repositories.memory_repository import InMemoryListingRepository


@pytest.fixture(autouse=True)
def mock_mongodb():
    """
    Prevent MongoDB connection attempts in all unit tests.

    The Atlas repository imports MongoClient at module load, so the name is
    patched where it is looked up as well as on pymongo itself.
    """
    with patch("pymongo.MongoClient") as mock_client, patch(
        "listing_query.common.repositories.atlas_repository.MongoClient", mock_client
    ):
        mock_instance = MagicMock()
        mock_db = MagicMock()
        mock_collection = MagicMock()

        # Setup chain: client["db"]["collection"]
        mock_instance.__getitem__ = MagicMock(return_value=mock_db)
        mock_db.__getitem__ = MagicMock(return_value=mock_collection)
        mock_collection.find = MagicMock(return_value=[])
        mock_collection.count_documents = MagicMock(return_value=0)
        mock_collection.aggregate = MagicMock(return_value=[])

        mock_client.return_value = mock_instance
        yield mock_client

    reset_listing_repository()
    AtlasListingRepository.reset_connection()


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real connection strings and tuning.

    Every variable read by RepositoryConfig / ListingQueryConfig is cleared,
    and Config is reset to its built-in defaults, so defaults apply unless a
    test sets one explicitly.
    """
    for name in (
        "MONGODB_URI",
        "MONGO_DB_NAME",
        "JOBS_COLLECTION",
        "TRAINING_COLLECTION",
        "LISTING_STORAGE",
        "LISTING_DEFAULT_PAGE_SIZE",
        "LISTING_MAX_PAGE_SIZE",
        "LISTING_TOP_COMPANIES",
        "LISTING_TOP_LOCATIONS",
        "LISTING_TOP_SKILLS",
        "SKILL_PERCENTAGE_BASIS",
    ):
        monkeypatch.delenv(name, raising=False)

    # Config captured the environment (and any .env file) at import
    monkeypatch.setattr(Config, "MONGODB_URI", "")
    monkeypatch.setattr(Config, "MONGO_DB_NAME", "listings")
    monkeypatch.setattr(Config, "JOBS_COLLECTION", "job_posts")
    monkeypatch.setattr(Config, "TRAINING_COLLECTION", "training_programs")


# ===== SAMPLE DOCUMENTS =====


JOB_IDS = [ObjectId() for _ in range(6)]


def make_job(index, **overrides):
    """Active public job document with analytics counters."""
    job = {
        "_id": JOB_IDS[index],
        "title": f"Job {index}",
        "description": "",
        "company": {"_id": "c1", "name": "Acme"},
        "location": {"city": "Berlin", "country": "Germany", "remote": False, "hybrid": False},
        "jobType": "full-time",
        "experienceLevel": "senior",
        "salary": {"min": 50000, "max": 70000},
        "requirements": {"skills": []},
        "tags": [],
        "status": "active",
        "visibility": "public",
        "featured": False,
        "urgent": False,
        "tenantId": "t1",
        "createdAt": f"2024-01-0{index + 1}",
        "analytics": {"views": 10, "applications": 1, "shortlisted": 0, "hired": 0},
    }
    for key, value in overrides.items():
        job[key] = value
    return job


@pytest.fixture
def sample_jobs():
    """Six jobs: four active public ones plus one draft and one private."""
    return [
        make_job(
            0,
            title="Senior Go Engineer",
            requirements={"skills": ["Go", "Kubernetes"]},
            featured=True,
            salary={"min": 90000, "max": 120000},
            analytics={"views": 100, "applications": 10, "shortlisted": 2, "hired": 1},
        ),
        make_job(
            1,
            title="Backend Developer",
            company={"_id": "c2", "name": "Globex"},
            location={"city": "Lisbon", "country": "Portugal", "remote": True, "hybrid": False},
            requirements={"skills": ["Go", "Rust"]},
            urgent=True,
            salary={"min": 60000, "max": 80000},
            analytics={"views": 50, "applications": 5, "shortlisted": 1, "hired": 0},
        ),
        make_job(
            2,
            title="Data Analyst",
            jobType="contract",
            experienceLevel="mid",
            requirements={"skills": ["SQL"]},
            tags=["data"],
            salary={"min": 40000, "max": 55000},
        ),
        make_job(
            3,
            title="Platform Engineer",
            location={"city": "Berlin", "country": "Germany", "remote": False, "hybrid": True},
            requirements={"skills": ["Rust", "Go"]},
            tags=["infra", "data"],
            tenantId="t2",
            salary={"min": 100000, "max": 130000},
        ),
        make_job(4, title="Draft Go Role", status="draft", requirements={"skills": ["Go"]}),
        make_job(5, title="Private Go Role", visibility="private", requirements={"skills": ["Go"]}),
    ]


@pytest.fixture
def memory_repository(sample_jobs):
    """In-memory repository seeded with sample_jobs."""
    return InMemoryListingRepository(sample_jobs)
