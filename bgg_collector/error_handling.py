"""
Common error handling utilities for the BGG game collector.

Errors raised for a single page or a single game are recorded by the pipeline
and never stop sibling work. Field-level errors are recovered on the spot with
a default value.
"""

import logging
from typing import Any, Callable, Optional
from functools import wraps

logger = logging.getLogger(__name__)


class CollectorError(Exception):
    """Base class for all collector errors."""
    kind = "error"


class ConfigurationError(CollectorError):
    """Invalid run configuration."""
    kind = "configuration"


class FetchError(CollectorError):
    """A document could not be retrieved from a remote source."""
    kind = "fetch"

    def __init__(self, url: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.url = url
        self.cause = cause
        super().__init__(message or f"{self.kind} fetching {url}: {cause}")


class TransportError(FetchError):
    """Network unreachable, connection reset or timeout."""
    kind = "unreachable"


class ProtocolError(FetchError):
    """The server answered with a status other than 200."""
    kind = "bad_status"

    def __init__(self, url: str, status_code: int):
        self.status_code = status_code
        super().__init__(url, message=f"{url} returned HTTP {status_code}")


class ParseError(FetchError):
    """The response body is not a document of the expected type."""
    kind = "unparseable"


class ExtractError(CollectorError):
    """A game could not be turned into a record."""
    kind = "extract"

    def __init__(self, identifier: str, message: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message or f"could not extract game {identifier}")


class NotFoundError(ExtractError):
    """The detail document holds no item element for the identifier."""
    kind = "not_found"

    def __init__(self, identifier: str):
        super().__init__(identifier, f"game {identifier} not found in detail document")


class FieldError(CollectorError):
    """A single field could not be parsed. Always recovered locally."""
    kind = "field"

    def __init__(self, identifier: str, field: str, raw: Any):
        self.identifier = identifier
        self.field = field
        self.raw = raw
        super().__init__(f"game {identifier}: cannot parse {field} from {raw!r}")


class Cancelled(CollectorError):
    """A cancellation signal stopped the task before it fetched anything."""
    kind = "cancelled"


class SinkError(CollectorError):
    """Delivering records to the sink failed."""
    kind = "sink"


class PipelineAborted(CollectorError):
    """The run stopped before delivering records."""
    kind = "aborted"

    def __init__(self, reason: str, result: Any = None):
        self.reason = reason
        self.result = result
        super().__init__(reason)


def field_default(default: Any):
    """
    Decorator for field readers: a FieldError is logged and replaced by ``default``.

    Args:
        default: Value to return when the field cannot be parsed
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except FieldError as e:
                logger.warning(f"{e}; using {default!r}")
                return default
        return wrapper
    return decorator
