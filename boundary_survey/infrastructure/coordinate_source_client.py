"""
Infrastructure layer: remote coordinate file client with retry logic.
"""
from typing import Any, Optional
import logging

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from boundary_survey.config import settings
from boundary_survey.domain.errors import CoordinateSourceError

logger = logging.getLogger(__name__)


class CoordinateSourceClient:
    """
    Fetches coordinate files (JSON arrays) from remote URLs.
    Implements retry logic with exponential backoff on server and transport errors.
    """

    def __init__(self, timeout: Optional[float] = None):
        """Initialize the HTTP client with configuration."""
        self.timeout = timeout or settings.coordinate_source_timeout
        self.client = httpx.AsyncClient(
            headers={"accept": "application/json"},
            timeout=self.timeout,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "CoordinateSourceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((httpx.HTTPStatusError, httpx.TransportError)),
        reraise=True,
    )
    async def _get(self, url: str) -> httpx.Response:
        """
        GET a URL, retrying on 5xx and transport errors.

        Raises:
            httpx.HTTPStatusError: On 5xx after retries are exhausted
            httpx.TransportError: On connection failures after retries are exhausted
            CoordinateSourceError: On 4xx (not retried)
        """
        response = await self.client.get(url)
        if response.status_code >= 500:
            response.raise_for_status()
        if response.status_code >= 400:
            raise CoordinateSourceError(
                f"Coordinate source returned {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        return response

    async def fetch_records(self, url: str) -> list[Any]:
        """
        Fetch and decode a coordinate array.

        Args:
            url: Location of a JSON document containing an array of records

        Returns:
            The decoded array (records are validated by ingestion, not here)

        Raises:
            CoordinateSourceError: If the request fails or the payload is not a JSON array
        """
        try:
            response = await self._get(url)
        except httpx.HTTPStatusError as e:
            raise CoordinateSourceError(
                f"Coordinate source failed: {e.response.status_code} - {e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise CoordinateSourceError(f"Coordinate source request error: {str(e)}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise CoordinateSourceError(f"Coordinate source did not return JSON: {e}") from e

        if not isinstance(data, list):
            raise CoordinateSourceError("Coordinate source should return an array of coordinate objects")

        logger.info(f"Fetched {len(data)} coordinate records from {url}")
        return data


# Singleton instance
_source_client: Optional[CoordinateSourceClient] = None


def get_source_client() -> CoordinateSourceClient:
    """
    Get or create the singleton coordinate source client.

    Returns:
        CoordinateSourceClient instance
    """
    global _source_client
    if _source_client is None:
        _source_client = CoordinateSourceClient()
    return _source_client
