"""Receipt storage HTTP client"""

import httpx
from agency_ledger.domain.exceptions import StorageError
from agency_ledger.config import settings
from agency_ledger.infrastructure.observability.metrics import storage_failures_counter


class StorageClient:
    """Client for the external object storage holding payment receipts"""

    def __init__(
        self,
        base_url: str | None = None,
        bucket: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.storage_api_base).rstrip("/")
        self.bucket = bucket or settings.storage_bucket
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    @property
    def objects_url(self) -> str:
        return f"{self.base_url}/buckets/{self.bucket}/objects"

    def manages(self, url: str) -> bool:
        """True if the URL points into this client's bucket"""
        return url.startswith(f"{self.objects_url}/")

    async def store_file(self, path: str, content: bytes, content_type: str) -> str:
        """
        Upload a file and return its public URL.

        Raises:
            StorageError: On timeout, HTTP errors, or a response without a URL
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.put(
                    f"{self.objects_url}/{path}",
                    content=content,
                    headers={"Content-Type": content_type},
                )
                response.raise_for_status()
                return response.json()["url"]

            except httpx.TimeoutException as e:
                storage_failures_counter.inc()
                raise StorageError(f"Storage timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                storage_failures_counter.inc()
                raise StorageError(f"Storage error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                storage_failures_counter.inc()
                raise StorageError(f"Storage unavailable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                storage_failures_counter.inc()
                raise StorageError(f"Invalid storage response: {e}") from e

    async def delete_file(self, url: str) -> None:
        """
        Delete a previously stored file by URL.

        Raises:
            StorageError: If the URL is not in this bucket or the call fails
        """
        if not self.manages(url):
            raise StorageError(f"Receipt URL is not managed by this storage: {url}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.delete(url)
                if response.status_code == 404:
                    return  # Already gone
                response.raise_for_status()

            except httpx.TimeoutException as e:
                storage_failures_counter.inc()
                raise StorageError(f"Storage timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                storage_failures_counter.inc()
                raise StorageError(f"Storage error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                storage_failures_counter.inc()
                raise StorageError(f"Storage unavailable: {e}") from e
