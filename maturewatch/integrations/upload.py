"""HTTP client that posts matured files to an ingestion endpoint."""

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import httpx

logger = logging.getLogger(__name__)

MAX_RETRIES = 2
RETRY_DELAY = 1.0
DEFAULT_TIMEOUT = 30.0

T = TypeVar("T")


def _retry_on_disconnect(fn: Callable[..., T], *args, **kwargs) -> T:
    """Retry a call on ``RemoteProtocolError`` (server disconnect).

    Retries up to ``MAX_RETRIES`` times with a fixed delay between attempts.
    """
    for attempt in range(MAX_RETRIES + 1):
        try:
            return fn(*args, **kwargs)
        except httpx.RemoteProtocolError:
            if attempt == MAX_RETRIES:
                raise
            logger.warning(
                "Connection dropped (attempt %d/%d), retrying...",
                attempt + 1,
                MAX_RETRIES,
            )
            time.sleep(RETRY_DELAY)


class UploadClient:
    """Synchronous client that uploads files as multipart form data.

    Usage::

        with UploadClient("https://ingest.example.com/files", token="...") as client:
            receipt = client.upload(Path("incoming/report.csv"))
    """

    def __init__(
        self,
        url: str,
        token: str = "",
        *,
        field_name: str = "file",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._url = url
        self._field_name = field_name
        self._client = httpx.Client(headers=headers, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "UploadClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def upload(self, file_path: str | Path) -> str:
        """POST a file and return the response body, stripped.

        Raises:
            httpx.HTTPStatusError: If the endpoint answers with a 4xx/5xx status.
        """
        return _retry_on_disconnect(self._upload_raw, file_path)

    def _upload_raw(self, file_path: str | Path) -> str:
        path = Path(file_path)
        with path.open("rb") as f:
            response = self._client.post(
                self._url,
                files={self._field_name: (path.name, f, "application/octet-stream")},
            )
        response.raise_for_status()
        logger.debug("Uploaded %s (%d)", path.name, response.status_code)
        return response.text.strip()
