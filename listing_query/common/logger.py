"""
Request-scoped logging for listing searches.

One search touches the normalizer, the builders and the repository; tagging
its service-level log lines with the caller's request id lets them be found
next to the HTTP access log that triggered it.

Usage:
    log = get_logger(__name__, request_id=request_id, component="search")
    log.debug("job_feed page 2/10")   # -> "[req:3f2a9c1b] [search] job_feed page 2/10"
"""

import logging
from typing import Optional

# Request ids are usually UUIDs; eight characters are enough to correlate
REQUEST_ID_PREFIX_LENGTH = 8


class QueryLogger(logging.LoggerAdapter):
    """Logger adapter that prefixes messages with request id and component."""

    def __init__(
        self,
        logger: logging.Logger,
        request_id: Optional[str] = None,
        component: Optional[str] = None,
    ):
        super().__init__(logger, {"request_id": request_id, "component": component})

    @property
    def prefix(self) -> str:
        parts = []
        if self.extra["request_id"]:
            parts.append(f"[req:{self.extra['request_id'][:REQUEST_ID_PREFIX_LENGTH]}]")
        if self.extra["component"]:
            parts.append(f"[{self.extra['component']}]")
        return " ".join(parts)

    def process(self, msg, kwargs):
        prefix = self.prefix
        return (f"{prefix} {msg}" if prefix else msg), kwargs


def get_logger(
    name: str,
    request_id: Optional[str] = None,
    component: Optional[str] = None,
) -> QueryLogger:
    """
    Get a request-scoped logger.

    Args:
        name: Logger name (usually __name__)
        request_id: Optional request identifier for correlation
        component: Optional component name (e.g., "search", "insights")
    """
    return QueryLogger(logging.getLogger(name), request_id, component)
