"""Client for the service endpoints of the Tiger Cloud API."""

import logging

from ..core.api_client import APIClient, error_message
from ..core.errors import APIError, UnauthenticatedError
from .models import Service, StatusFetchResult

logger = logging.getLogger(__name__)


def _service_path(project_id: str, service_id: str) -> str:
    return f"/projects/{project_id}/services/{service_id}"


class ServiceAPIClient(APIClient):
    """Fetches, updates and deletes database services."""

    async def get_service(self, project_id: str, service_id: str) -> Service:
        """Fetch a service description.

        Raises:
            APIError: If the API returns a non-success status
            UnauthenticatedError: If the API key is rejected
        """
        response = await self.get(_service_path(project_id, service_id))
        try:
            return Service.model_validate(response.json())
        except ValueError as e:
            raise APIError(
                f"invalid service description for '{service_id}': {e}",
                status_code=response.status_code,
            ) from e

    async def get_service_status(self, project_id: str, service_id: str) -> StatusFetchResult:
        """Fetch the current state of a service for the wait loop.

        Non-success responses are returned as values. Transport errors
        (timeouts, refused connections) are raised so the caller can treat
        them as transient.
        """
        try:
            response = await self.get(
                _service_path(project_id, service_id), timeout=10.0, raise_for_status=False
            )
        except UnauthenticatedError as e:
            return StatusFetchResult.other_error(401, str(e))

        status = response.status_code
        if status == 200:
            try:
                return StatusFetchResult.found(Service.model_validate(response.json()))
            except ValueError:
                return StatusFetchResult.other_error(status, "no response body returned from API")
        if status == 404:
            return StatusFetchResult.not_found()
        if 500 <= status < 600:
            return StatusFetchResult.server_error(status, error_message(response))
        return StatusFetchResult.other_error(
            status, f"received unexpected {status} {response.reason_phrase} while checking service status"
        )

    async def update_password(self, project_id: str, service_id: str, password: str) -> None:
        """Set a new password for the service's administrative role.

        Raises:
            APIError: If the API does not accept the new password
        """
        await self.post(
            f"{_service_path(project_id, service_id)}/updatePassword",
            {"password": password},
        )
        logger.info("Updated password for service %s", service_id)

    async def delete_service(self, project_id: str, service_id: str) -> None:
        await self.delete(_service_path(project_id, service_id))
        logger.info("Requested deletion of service %s", service_id)
