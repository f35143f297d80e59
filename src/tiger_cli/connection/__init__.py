"""Connection resolution and testing."""

from .details import (
    POOLER_UNAVAILABLE_WARNING,
    ConnectionDetails,
    ConnectionOptions,
    get_connection_details,
)
from .tester import (
    ConnectionFailure,
    check_connection,
    classify_connection_error,
    is_authentication_error,
)

__all__ = [
    "POOLER_UNAVAILABLE_WARNING",
    "ConnectionDetails",
    "ConnectionFailure",
    "ConnectionOptions",
    "check_connection",
    "classify_connection_error",
    "get_connection_details",
    "is_authentication_error",
]
