"""TinyPNG (Tinify) API client for image compression."""

from __future__ import annotations

import requests
import structlog

logger = structlog.get_logger(__name__)


class TinifyAPIError(Exception):
    """The Tinify API answered with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_message(response: requests.Response) -> str:
    """Build ``"<error>, <message>"`` from the JSON error payload.

    Falls back to ``"HTTP <status>"`` when the body is not the expected JSON.
    """
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(payload, dict) and "error" in payload:
        return f"{payload.get('error')}, {payload.get('message')}"
    return f"HTTP {response.status_code}"


class TinifyClient:
    """Client for the Tinify shrink API.

    One compression is two calls: ``shrink`` uploads the source bytes and
    returns the output location, ``download`` fetches the compressed bytes.
    """

    BASE_URL = "https://api.tinify.com"

    def __init__(self, api_key: str, timeout: float = 60.0) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        self.session.auth = ("api", api_key)

    def shrink(self, data: bytes) -> str:
        """Upload image bytes and return the URL of the compressed output.

        Raises:
            TinifyAPIError: the service did not accept the upload.
            requests.RequestException: network-level failure.
        """
        response = self.session.post(
            f"{self.BASE_URL}/shrink",
            data=data,
            headers={"Content-Type": "application/octet-stream"},
            timeout=self.timeout,
        )

        location = response.headers.get("Location")
        if response.status_code == 201 and location:
            logger.debug(
                "tinify_shrink_accepted",
                input_size=len(data),
                compression_count=response.headers.get("Compression-Count"),
            )
            return location

        raise TinifyAPIError(response.status_code, _error_message(response))

    def download(self, location: str) -> bytes:
        """Fetch compressed bytes from a location returned by :meth:`shrink`."""
        response = self.session.get(location, timeout=self.timeout)
        if not response.ok:
            raise TinifyAPIError(response.status_code, _error_message(response))
        return response.content

    def close(self) -> None:
        self.session.close()
