from typing import Any, Optional

import httpx

from nutribot.logging_config import get_logger

logger = get_logger("collaborator")


class CollaboratorError(Exception):
    """An external HTTP service failed or answered with something unusable."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.message = message
        self.status_code = status_code
        super().__init__(f"{service}: {message}")


class CollaboratorClient:
    """Base for JSON-over-HTTP collaborators sharing one AsyncClient."""

    service_name = "collaborator"

    def __init__(self, http_client: httpx.AsyncClient, base_url: str):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        allow_redirect: bool = False,
        **kwargs,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await self.http_client.request(method, url, follow_redirects=False, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{self.service_name} request failed: {method} {path}: {e}")
            raise CollaboratorError(self.service_name, f"request failed: {e}") from e

        if response.is_success or (allow_redirect and response.is_redirect):
            return response

        logger.warning(
            f"{self.service_name} returned an error",
            extra={"context": {"method": method, "path": path, "status": response.status_code}},
        )
        raise CollaboratorError(
            self.service_name,
            f"{method} {path} returned {response.status_code}",
            status_code=response.status_code,
        )

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise CollaboratorError(self.service_name, "response is not JSON", response.status_code) from e
