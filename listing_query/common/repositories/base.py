"""
Repository Interface Definitions

Defines the abstract read interface for listing collections. Methods take
the engine-agnostic query structures (Predicate, SortKey, Pipeline) so the
same service code runs against MongoDB or the in-memory engine.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from listing_query.query.types import Pipeline, Predicate, SortKey


class ListingRepositoryInterface(ABC):
    """
    Abstract interface for listing collection reads.

    Implementations:
    - AtlasListingRepository: MongoDB via pymongo
    - InMemoryListingRepository: list of dicts, evaluated by memory_engine

    All methods are fail-fast: storage errors propagate to the caller.
    """

    @abstractmethod
    def find(
        self,
        predicate: Predicate,
        sort: Optional[SortKey] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        Find listing documents.

        Args:
            predicate: Filter predicate
            sort: Sort key, or None for natural order
            skip: Number of documents to skip
            limit: Maximum documents to return (0 = no limit)

        Returns:
            List of matching documents
        """
        pass

    @abstractmethod
    def count(self, predicate: Predicate) -> int:
        """
        Count documents matching the predicate.

        Args:
            predicate: Filter predicate

        Returns:
            Count of matching documents
        """
        pass

    @abstractmethod
    def aggregate(self, pipeline: Pipeline) -> List[Dict[str, Any]]:
        """
        Run an aggregation pipeline.

        Args:
            pipeline: Ordered pipeline stages

        Returns:
            List of aggregation result rows
        """
        pass
