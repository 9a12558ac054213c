"""HTTP client service for the GRID API."""

from pathlib import Path
from typing import Any

import httpx
import structlog

from ..models import AppConfig
from .errors import DownloadError
from .filesystem import FileSystemService

log = structlog.stdlib.get_logger()

PARTIAL_SUFFIX = ".part"


class HttpClientService:
    """HTTP client service with API key authentication and timeout handling.

    Requests are made exactly once; failures propagate to the caller.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        filesystem: FileSystemService | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client service.

        Args:
            base_url: Root URL every request path is resolved against
            api_key: Key sent in the ``x-api-key`` header
            timeout: Request timeout in seconds
            filesystem: File system service used to clean up partial downloads
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._filesystem = filesystem or FileSystemService()

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={
                "User-Agent": "stealth-grid/0.1",
                "x-api-key": api_key,
            },
            follow_redirects=True,
            transport=transport,
        )

        log.info("HTTP client service initialized", base_url=self.base_url, timeout=timeout)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        filesystem: FileSystemService | None = None,
    ) -> "HttpClientService":
        """Build a client from the loaded application configuration."""
        return cls(
            base_url=config.api_url,
            api_key=config.api_key,
            timeout=config.request_timeout,
            filesystem=filesystem,
        )

    async def post_json(self, path: str, payload: dict[str, Any]) -> Any:
        """POST a JSON body and decode the JSON response.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
            json.JSONDecodeError: If the body is not JSON
        """
        log.debug("Making HTTP POST request", path=path)
        try:
            response = await self._client.post(path, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.warning(
                "HTTP POST request failed",
                path=path,
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        log.info(
            "HTTP POST request successful",
            path=path,
            status_code=response.status_code,
            content_length=len(response.content)
        )
        return response.json()

    async def get_json(self, path: str) -> Any:
        """GET a resource and decode the JSON response.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
            json.JSONDecodeError: If the body is not JSON
        """
        log.debug("Making HTTP GET request", path=path)
        try:
            response = await self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.warning(
                "HTTP GET request failed",
                path=path,
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        log.info(
            "HTTP GET request successful",
            path=path,
            status_code=response.status_code,
            content_length=len(response.content)
        )
        return response.json()

    async def download_file(
        self,
        path: str,
        destination: Path,
        chunk_size: int = 65536
    ) -> int:
        """Stream a file to disk.

        Args:
            path: API path to download from
            destination: Local file, replaced only once the whole body has arrived
            chunk_size: Size of chunks to read/write in bytes

        Returns:
            Number of bytes written

        Raises:
            httpx.HTTPError: If the request fails
            DownloadError: If fewer bytes arrive than announced
            OSError: If the file cannot be written
        """
        log.debug("Starting file download", path=path, destination=str(destination))

        # Stream beside the destination so a failed retry keeps an earlier copy
        partial = destination.with_name(destination.name + PARTIAL_SUFFIX)
        completed = False
        try:
            async with self._client.stream("GET", path) as response:
                response.raise_for_status()

                # content-length counts encoded bytes; only compare identity bodies
                total_size = 0
                if not response.headers.get("content-encoding"):
                    total_size = int(response.headers.get("content-length", 0))
                downloaded = 0

                with open(partial, "wb") as f:
                    async for chunk in response.aiter_bytes(chunk_size):
                        f.write(chunk)
                        downloaded += len(chunk)

            if total_size > 0 and downloaded != total_size:
                log.warning(
                    "Downloaded file size mismatch",
                    expected=total_size,
                    actual=downloaded
                )
                raise DownloadError(
                    "The download ended before the whole file arrived.",
                    file_name=destination.name,
                    url=f"{self.base_url}{path}",
                    bytes_downloaded=downloaded,
                    total_bytes=total_size,
                )

            partial.replace(destination)
            completed = True

        except (httpx.HTTPError, OSError) as e:
            log.warning(
                "File download failed",
                path=path,
                destination=str(destination),
                error=str(e),
                error_type=type(e).__name__
            )
            raise

        finally:
            # Also runs on cancellation
            if not completed:
                self._filesystem.remove_partial(partial)

        log.info(
            "File download completed",
            path=path,
            destination=str(destination),
            size=downloaded
        )
        return downloaded

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._client.aclose()
        log.info("HTTP client closed")

    async def __aenter__(self) -> "HttpClientService":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
