from __future__ import annotations

import logging
from urllib.parse import urlparse

import requests

from fetchable_image.config import DEFAULT_USER_AGENT, HttpConfig

logger = logging.getLogger(__name__)

_FETCHABLE_SCHEMES = {"http", "https"}


class ImageFetchError(RuntimeError):
    def __init__(self, url: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


def is_fetchable_url(locator: str | None) -> bool:
    if not locator or not locator.strip():
        return False
    try:
        parsed = urlparse(locator.strip())
    except ValueError:
        return False
    return parsed.scheme.lower() in _FETCHABLE_SCHEMES and bool(parsed.netloc)


class ImageFetcher:
    """Single-shot HTTP GET for image bytes. No retries, no resume."""

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout_seconds: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self.session.headers.setdefault("User-Agent", user_agent)

    @classmethod
    def from_config(
        cls, config: HttpConfig, *, session: requests.Session | None = None
    ) -> ImageFetcher:
        return cls(
            session=session,
            timeout_seconds=config.timeout_seconds,
            user_agent=config.user_agent,
        )

    def download(self, url: str) -> bytes:
        """Return the response body for ``url``.

        Raises:
            ImageFetchError: on any transport failure or non-2xx status.
        """
        if not is_fetchable_url(url):
            raise ImageFetchError(url, f"not an http(s) url: {url!r}")

        try:
            response = self.session.get(url.strip(), timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            raise ImageFetchError(
                url, f"http error status={status_code}", status_code=status_code
            ) from exc
        except requests.RequestException as exc:
            raise ImageFetchError(url, f"request failed: {exc}") from exc

        data = response.content
        logger.info("image_fetch ok url=%s bytes=%d", url, len(data))
        return data

    def fetch(self, url: str) -> bytes | None:
        """Return the body for ``url`` or ``None`` on any failure.

        For callers that only need bytes-or-nothing; ``ImageService`` uses
        ``download`` to keep the failure detail.
        """
        try:
            return self.download(url)
        except ImageFetchError as exc:
            logger.warning("image_fetch failed url=%s reason=%s", url, exc)
            return None
