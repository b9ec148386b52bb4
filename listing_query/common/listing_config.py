"""
Listing Query Configuration

Tuning knobs for listing search and insights: page sizes, top-N limits for
the insight pipelines, and the skill percentage denominator.

Usage:
    config = ListingQueryConfig.from_env()
    service = ListingSearchService(repository, config=config)
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from listing_query.query.pipeline_builder import (
    TOP_COMPANIES_LIMIT,
    TOP_LOCATIONS_LIMIT,
    TOP_SKILLS_LIMIT,
)
from listing_query.query.types import MAX_PAGE_SIZE, PercentageBasis

logger = logging.getLogger(__name__)


@dataclass
class ListingQueryConfig:
    """
    Configuration for listing queries.

    Loads settings from environment variables with sensible defaults.
    """

    # None keeps each listing schema's own page size
    default_page_size: Optional[int] = None
    max_page_size: int = MAX_PAGE_SIZE

    top_companies: int = TOP_COMPANIES_LIMIT
    top_locations: int = TOP_LOCATIONS_LIMIT
    top_skills: int = TOP_SKILLS_LIMIT

    skill_percentage_basis: PercentageBasis = PercentageBasis.TOTAL

    def __post_init__(self):
        if self.max_page_size < 1:
            raise ValueError(f"max_page_size must be >= 1, got {self.max_page_size}")
        if self.default_page_size is not None and not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError(
                f"default_page_size must be in [1, {self.max_page_size}], got {self.default_page_size}"
            )

    @classmethod
    def from_env(cls) -> "ListingQueryConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            LISTING_DEFAULT_PAGE_SIZE: Page size when none is requested
                (default: the listing schema's, 10 for jobs and 12 for training)
            LISTING_MAX_PAGE_SIZE: Largest accepted page size (default: 50)
            LISTING_TOP_COMPANIES: Company insight rows (default: 10)
            LISTING_TOP_LOCATIONS: Location insight rows (default: 10)
            LISTING_TOP_SKILLS: Skill insight rows (default: 20)
            SKILL_PERCENTAGE_BASIS: "total" or "group" (default: total)
        """
        basis_str = os.environ.get("SKILL_PERCENTAGE_BASIS", "total").lower()
        try:
            basis = PercentageBasis(basis_str)
        except ValueError:
            logger.warning(f"Invalid SKILL_PERCENTAGE_BASIS '{basis_str}', defaulting to total")
            basis = PercentageBasis.TOTAL

        default_page_size = os.environ.get("LISTING_DEFAULT_PAGE_SIZE")

        return cls(
            default_page_size=int(default_page_size) if default_page_size else None,
            max_page_size=int(os.environ.get("LISTING_MAX_PAGE_SIZE", str(MAX_PAGE_SIZE))),
            top_companies=int(os.environ.get("LISTING_TOP_COMPANIES", str(TOP_COMPANIES_LIMIT))),
            top_locations=int(os.environ.get("LISTING_TOP_LOCATIONS", str(TOP_LOCATIONS_LIMIT))),
            top_skills=int(os.environ.get("LISTING_TOP_SKILLS", str(TOP_SKILLS_LIMIT))),
            skill_percentage_basis=basis,
        )
