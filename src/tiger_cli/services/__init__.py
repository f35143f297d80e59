"""Tiger Cloud service models and API client."""

from .api_client import ServiceAPIClient
from .models import (
    ConnectionPooler,
    Endpoint,
    FetchStatus,
    Service,
    StatusFetchResult,
)

__all__ = [
    "ConnectionPooler",
    "Endpoint",
    "FetchStatus",
    "Service",
    "ServiceAPIClient",
    "StatusFetchResult",
]
