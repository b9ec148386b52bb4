"""
Repository Configuration and Factory

Provides the factory that returns the repository implementation for a
listing, based on environment configuration.
"""

import os
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from listing_query.common.config import Config

from .base import ListingRepositoryInterface

logger = logging.getLogger(__name__)


class StorageBackend(str, Enum):
    """Where listing documents are read from."""
    ATLAS = "atlas"    # MongoDB via pymongo
    MEMORY = "memory"  # In-process list, local development and tests


@dataclass
class RepositoryConfig:
    """
    Configuration for repository initialization.

    Loaded from environment variables with sensible defaults.
    """
    backend: StorageBackend = StorageBackend.ATLAS

    # MongoDB (required for the atlas backend)
    mongodb_uri: Optional[str] = None
    database: str = "listings"
    jobs_collection: str = "job_posts"
    training_collection: str = "training_programs"

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        """
        Load configuration from environment variables, falling back to the
        values Config read from the environment and .env at import.

        Environment variables:
        - LISTING_STORAGE: atlas/memory (default: atlas)
        - MONGODB_URI: MongoDB connection string (required for atlas)
        - MONGO_DB_NAME: Database name (default: listings)
        - JOBS_COLLECTION: Job feed collection (default: job_posts)
        - TRAINING_COLLECTION: Training catalog collection (default: training_programs)

        Returns:
            RepositoryConfig instance

        Raises:
            ValueError: If the atlas backend is selected and MONGODB_URI is not set
        """
        backend_str = os.getenv("LISTING_STORAGE", "atlas").lower()
        try:
            backend = StorageBackend(backend_str)
        except ValueError:
            logger.warning(f"Invalid LISTING_STORAGE '{backend_str}', defaulting to atlas")
            backend = StorageBackend.ATLAS

        mongodb_uri = os.getenv("MONGODB_URI") or Config.MONGODB_URI or None
        if backend == StorageBackend.ATLAS and not mongodb_uri:
            raise ValueError("MONGODB_URI environment variable is required")

        return cls(
            backend=backend,
            mongodb_uri=mongodb_uri,
            database=os.getenv("MONGO_DB_NAME", Config.MONGO_DB_NAME),
            jobs_collection=os.getenv("JOBS_COLLECTION", Config.JOBS_COLLECTION),
            training_collection=os.getenv("TRAINING_COLLECTION", Config.TRAINING_COLLECTION),
        )

    def collection_for(self, listing: str) -> str:
        """Collection name for a listing schema name."""
        if listing == "training_catalog":
            return self.training_collection
        return self.jobs_collection


# Singleton repository instances, keyed by listing schema name
_repository_instances: Dict[str, ListingRepositoryInterface] = {}


def get_listing_repository(listing: str = "job_feed") -> ListingRepositoryInterface:
    """
    Get the repository instance for a listing.

    Factory function that returns the implementation selected by
    LISTING_STORAGE. Uses a singleton per listing for connection pooling.

    Args:
        listing: Listing schema name ("job_feed" or "training_catalog")

    Returns:
        ListingRepositoryInterface implementation

    Raises:
        ValueError: If MongoDB URI is not configured for the atlas backend
    """
    if listing not in _repository_instances:
        config = RepositoryConfig.from_env()

        if config.backend == StorageBackend.MEMORY:
            from .memory_repository import InMemoryListingRepository
            _repository_instances[listing] = InMemoryListingRepository()
            logger.info(f"Initialized in-memory repository for {listing}")
        else:
            from .atlas_repository import AtlasListingRepository
            _repository_instances[listing] = AtlasListingRepository(
                mongodb_uri=config.mongodb_uri,
                database=config.database,
                collection=config.collection_for(listing),
            )
            logger.info(f"Initialized Atlas repository for {listing}")

    return _repository_instances[listing]


def reset_listing_repository() -> None:
    """
    Reset the repository singletons.

    Used for testing or when configuration changes.
    """
    from .atlas_repository import AtlasListingRepository

    if any(isinstance(repo, AtlasListingRepository) for repo in _repository_instances.values()):
        AtlasListingRepository.reset_connection()

    _repository_instances.clear()
    logger.info("Repository singletons reset")
