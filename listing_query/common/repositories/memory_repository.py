"""
In-Memory Listing Repository

ListingRepositoryInterface over a list of dicts, evaluated by memory_engine.
Used for local development (LISTING_STORAGE=memory) and tests.
"""

import copy
from typing import Any, Dict, Iterable, List, Optional

from listing_query.query import memory_engine
from listing_query.query.types import Pipeline, Predicate, SortKey

from .base import ListingRepositoryInterface


class InMemoryListingRepository(ListingRepositoryInterface):
    """Documents live in a Python list; every read returns deep copies."""

    def __init__(self, documents: Optional[Iterable[Dict[str, Any]]] = None):
        self._documents: List[Dict[str, Any]] = [copy.deepcopy(doc) for doc in documents or []]

    def insert_many(self, documents: Iterable[Dict[str, Any]]) -> int:
        """Add documents. Returns how many were added."""
        added = [copy.deepcopy(doc) for doc in documents]
        self._documents.extend(added)
        return len(added)

    def find(
        self,
        predicate: Predicate,
        sort: Optional[SortKey] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        found = memory_engine.run_find(
            self._documents, predicate, sort_key=sort, skip=skip, limit=limit or None
        )
        return copy.deepcopy(found)

    def count(self, predicate: Predicate) -> int:
        return memory_engine.count(self._documents, predicate)

    def aggregate(self, pipeline: Pipeline) -> List[Dict[str, Any]]:
        return copy.deepcopy(memory_engine.run_pipeline(self._documents, pipeline))
