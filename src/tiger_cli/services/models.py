"""Service topology models returned by the Tiger Cloud API."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Endpoint(BaseModel):
    """A network endpoint a database can be reached at."""

    model_config = ConfigDict(frozen=True)

    host: Optional[str] = None
    port: Optional[int] = None


class ConnectionPooler(BaseModel):
    model_config = ConfigDict(frozen=True)

    endpoint: Optional[Endpoint] = None


class Service(BaseModel):
    """The subset of a service description the connection layer relies on."""

    model_config = ConfigDict(extra="ignore")

    service_id: Optional[str] = None
    project_id: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None
    endpoint: Optional[Endpoint] = None
    connection_pooler: Optional[ConnectionPooler] = None

    @property
    def pooler_endpoint(self) -> Optional[Endpoint]:
        if self.connection_pooler is None:
            return None
        return self.connection_pooler.endpoint


class FetchStatus(Enum):
    """Discriminator for :class:`StatusFetchResult`."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    OTHER_ERROR = "other_error"


class StatusFetchResult(BaseModel):
    """Outcome of fetching a service's current state."""

    kind: FetchStatus
    service: Optional[Service] = None
    status_code: Optional[int] = None
    detail: Optional[str] = None

    @classmethod
    def found(cls, service: Service, status_code: int = 200) -> "StatusFetchResult":
        return cls(kind=FetchStatus.FOUND, service=service, status_code=status_code)

    @classmethod
    def not_found(cls) -> "StatusFetchResult":
        return cls(kind=FetchStatus.NOT_FOUND, status_code=404)

    @classmethod
    def server_error(cls, status_code: int = 500, detail: Optional[str] = None) -> "StatusFetchResult":
        return cls(kind=FetchStatus.SERVER_ERROR, status_code=status_code, detail=detail)

    @classmethod
    def other_error(cls, status_code: Optional[int], detail: Optional[str] = None) -> "StatusFetchResult":
        return cls(kind=FetchStatus.OTHER_ERROR, status_code=status_code, detail=detail)
