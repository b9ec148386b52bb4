"""
Atlas Listing Repository

MongoDB implementation of ListingRepositoryInterface. Query structures are
translated by mongo_adapter right before they reach pymongo.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo import MongoClient
from pymongo.collection import Collection

from listing_query.common.errors import log_on_exception
from listing_query.query.mongo_adapter import to_mongo_filter, to_mongo_pipeline, to_mongo_sort
from listing_query.query.types import Pipeline, Predicate, SortKey

from .base import ListingRepositoryInterface

logger = logging.getLogger(__name__)


class AtlasListingRepository(ListingRepositoryInterface):
    """
    MongoDB-backed listing repository.

    Connection Management:
    - One MongoClient per process, shared by every repository instance
    - PyMongo handles connection pooling internally

    Error Handling:
    - Fail-fast: all errors are logged and propagate to the caller
    """

    _client: Optional[MongoClient] = None
    _client_uri: Optional[str] = None

    def __init__(self, mongodb_uri: str, database: str = "listings", collection: str = "job_posts"):
        """
        Initialize repository with connection parameters.

        Args:
            mongodb_uri: MongoDB connection string
            database: Database name (default: "listings")
            collection: Collection name (default: "job_posts")
        """
        self._mongodb_uri = mongodb_uri
        self._database_name = database
        self._collection_name = collection
        self._collection: Optional[Collection] = None

    @classmethod
    def _get_client(cls, mongodb_uri: str) -> MongoClient:
        if cls._client is None or cls._client_uri != mongodb_uri:
            if cls._client is not None:
                cls._client.close()
            cls._client = MongoClient(mongodb_uri)
            cls._client_uri = mongodb_uri
        return cls._client

    def _get_collection(self) -> Collection:
        """Get the MongoDB collection, creating the shared client if needed."""
        if self._collection is None:
            client = self._get_client(self._mongodb_uri)
            self._collection = client[self._database_name][self._collection_name]
            logger.info(
                f"Atlas listing repository connected: {self._database_name}.{self._collection_name}"
            )
        return self._collection

    def find(
        self,
        predicate: Predicate,
        sort: Optional[SortKey] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """Find listing documents."""
        collection = self._get_collection()
        query = to_mongo_filter(predicate)
        logger.debug(f"find {self._collection_name}: {query}")

        with log_on_exception(logger, f"find {self._collection_name}", level=logging.ERROR):
            cursor = collection.find(query)
            if sort is not None:
                cursor = cursor.sort(to_mongo_sort(sort))
            if skip > 0:
                cursor = cursor.skip(skip)
            if limit > 0:
                cursor = cursor.limit(limit)
            return list(cursor)

    def count(self, predicate: Predicate) -> int:
        """Count documents matching the predicate."""
        collection = self._get_collection()
        with log_on_exception(logger, f"count {self._collection_name}", level=logging.ERROR):
            return collection.count_documents(to_mongo_filter(predicate))

    def aggregate(self, pipeline: Pipeline) -> List[Dict[str, Any]]:
        """Run an aggregation pipeline."""
        collection = self._get_collection()
        stages = to_mongo_pipeline(pipeline)
        logger.debug(f"aggregate {self._collection_name}: {stages}")

        with log_on_exception(logger, f"aggregate {self._collection_name}", level=logging.ERROR):
            return list(collection.aggregate(stages))

    @classmethod
    def reset_connection(cls) -> None:
        """
        Reset the shared client.

        Used for testing or connection recovery.
        """
        if cls._client:
            cls._client.close()
        cls._client = None
        cls._client_uri = None
        logger.info("Atlas listing repository connection reset")
