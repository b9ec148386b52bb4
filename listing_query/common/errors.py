"""
Error types for the listing query translation layer.

Every builder validates its whole input before constructing a predicate,
parameter list or pipeline, so callers can surface a validation message
without having issued any remote or local query.

Taxonomy:
    QueryBuildError          - base class, carries the offending field
    MalformedRangeError      - non-numeric or inverted bounds in a range string
    TypeMismatchError        - array-typed filter given non-array input
    InvalidPaginationError   - page/limit outside the accepted bounds
    UnsupportedFilterError   - filter the listing schema cannot express

Unknown sort keys are NOT errors: they fall back to the creation timestamp
(see sort_builder.build_sort and SortKey.is_fallback).
"""

import logging
from typing import Any, Optional


class QueryBuildError(ValueError):
    """Base class for caller-visible validation failures."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": type(self).__name__,
            "field": self.field,
            "message": str(self),
        }


class MalformedRangeError(QueryBuildError):
    """Range string is not "min-max" or "min+" with integer bounds."""


class TypeMismatchError(QueryBuildError, TypeError):
    """Filter value has the wrong type (e.g. a string where a list is expected)."""


class InvalidPaginationError(QueryBuildError):
    """Page or limit outside the accepted bounds."""


class UnsupportedFilterError(QueryBuildError):
    """Filter field has no counterpart in the target listing schema."""


def log_on_exception(
    logger: logging.Logger,
    operation: str,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Context manager for logging exceptions without swallowing them.

    Usage:
        with log_on_exception(logger, "MongoDB aggregate", level=logging.ERROR):
            collection.aggregate(pipeline)

    Args:
        logger: Logger instance to use
        operation: Operation description for the log message
        level: Log level (default: WARNING)
        include_traceback: Whether to include stack trace in log
    """

    class ExceptionLogger:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None:
                logger.log(level, f"[{operation}] Failed: {exc_val}", exc_info=include_traceback)
            # Never suppress
            return False

    return ExceptionLogger()
