"""API client implementation for the Tiger Cloud REST API."""

import base64
import uuid
from typing import Any, Dict, Optional

import httpx
from opentelemetry import trace
from opentelemetry.propagate import inject

from .errors import APIError, UnauthenticatedError


def _raise_for_unauthenticated(response: httpx.Response) -> None:
    """Check if the response indicates an unauthenticated request.

    Raises:
        UnauthenticatedError: If the response status code is 401.
    """
    if response.status_code == 401:
        raise UnauthenticatedError(
            "Unauthenticated request. Please check your API key or login status."
        )


def error_message(response: httpx.Response) -> str:
    """Best-effort human readable error from an API response body."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            error_info = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(error_info, dict):
            return error_info.get("message") or error_info.get("error") or str(error_info)
        return str(error_info)
    return response.text or response.reason_phrase


def _raise_for_status_with_details(response: httpx.Response) -> None:
    if response.is_success:
        return
    raise APIError(
        f"{response.status_code} Error for {response.request.url}: {error_message(response)}",
        status_code=response.status_code,
    )


class APIClient:
    """Client for interacting with the API service over HTTP."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        trace_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the API client.

        Args:
            api_url: The base URL of the API (e.g., https://console.cloud.timescale.com/public/api/v1)
            api_key: The API authentication key
            trace_id: Optional trace ID for the CLI process lifecycle (generated if not provided)
            transport: Optional httpx transport, used by tests to stub the API
        """
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.trace_id = trace_id or str(uuid.uuid4())
        self.tracer = trace.get_tracer(__name__)
        self._transport = transport

    def _get_headers(self) -> Dict[str, str]:
        encoded_key = base64.b64encode(self.api_key.encode("utf-8")).decode("ascii")
        headers = {
            "Authorization": f"Basic {encoded_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        # Inject OpenTelemetry trace context headers
        trace_headers: Dict[str, str] = {}
        inject(trace_headers)
        headers.update(trace_headers)

        headers["X-Tiger-Trace-Id"] = self.trace_id
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport)

    async def request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        timeout: float = 30.0,
        raise_for_status: bool = True,
    ) -> httpx.Response:
        url = f"{self.api_url}/{path.lstrip('/')}"
        with self.tracer.start_as_current_span(
            f"api.{method.lower()}.{path.strip('/').replace('/', '.')}",
            attributes={
                "http.method": method,
                "http.url": url,
                "tiger.trace_id": self.trace_id,
            },
        ) as span:
            try:
                async with self._client() as client:
                    response = await client.request(
                        method,
                        url,
                        json=payload,
                        headers=self._get_headers(),
                        timeout=timeout,
                    )
                    span.set_attribute("http.status_code", response.status_code)
                    _raise_for_unauthenticated(response)
                    if raise_for_status:
                        _raise_for_status_with_details(response)
                    return response
            except Exception as e:
                span.record_exception(e)
                raise

    async def get(self, path: str, timeout: float = 30.0, raise_for_status: bool = True) -> httpx.Response:
        return await self.request("GET", path, timeout=timeout, raise_for_status=raise_for_status)

    async def post(
        self, path: str, payload: Dict[str, Any], timeout: float = 30.0
    ) -> httpx.Response:
        return await self.request("POST", path, payload=payload, timeout=timeout)

    async def delete(self, path: str, timeout: float = 30.0) -> httpx.Response:
        return await self.request("DELETE", path, timeout=timeout)
