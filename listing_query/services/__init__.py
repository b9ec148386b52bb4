"""
Services module for listing search and insights.
"""

from listing_query.services.listing_search_service import ListingPage, ListingSearchService

__all__ = [
    "ListingPage",
    "ListingSearchService",
]
