"""
Repository Pattern for Listing Reads

Public API:
- get_listing_repository(): Factory to get a listing repository instance
- ListingRepositoryInterface: Abstract interface for listing collections
- InMemoryListingRepository: List-backed implementation

Usage:
    from listing_query.common.repositories import get_listing_repository

    repo = get_listing_repository("job_feed")
    rows = repo.aggregate(build_skill_insights_pipeline())
"""

from .base import ListingRepositoryInterface
from .memory_repository import InMemoryListingRepository
from .config import (
    get_listing_repository,
    reset_listing_repository,
    RepositoryConfig,
    StorageBackend,
)

__all__ = [
    "get_listing_repository",
    "reset_listing_repository",
    "ListingRepositoryInterface",
    "InMemoryListingRepository",
    "RepositoryConfig",
    "StorageBackend",
]
