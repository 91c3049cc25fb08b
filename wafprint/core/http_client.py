"""
HTTP probe client for wafprint
Thin wrapper around httpx returning the raw parts a ResponseSignature is built from
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import httpx

from .exceptions import ProbeTimeoutError, TransportError

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_TIMEOUT_MS = 10000


@dataclass
class RawResponse:
    """Unprocessed probe result."""
    status_code: int
    reason: str
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body: str = ""
    url: str = ""
    elapsed: float = 0.0


class HTTPClient:
    """Async probe client. One GET per probe, no redirects, no retries."""

    def __init__(self,
                 user_agent: str = DEFAULT_USER_AGENT,
                 verify_ssl: bool = False,
                 follow_redirects: bool = False,
                 transport: Optional[httpx.AsyncBaseTransport] = None):

        self.user_agent = user_agent
        self.verify_ssl = verify_ssl
        self.follow_redirects = follow_redirects
        self.logger = logging.getLogger(__name__)

        self.session_config = {
            "verify": verify_ssl,
            "follow_redirects": follow_redirects,
        }
        if transport is not None:
            self.session_config["transport"] = transport

        self._session: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> httpx.AsyncClient:
        """Ensure HTTP session is initialized."""
        if self._session is None:
            headers = {
                "User-Agent": self.user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            }
            self._session = httpx.AsyncClient(headers=headers, **self.session_config)
        return self._session

    async def close(self):
        """Close the HTTP session."""
        if self._session:
            await self._session.aclose()
            self._session = None

    async def probe(self, url: str, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> RawResponse:
        """Issue one GET to `url` bounded by `timeout_ms`.

        Raises ProbeTimeoutError on timeout and TransportError on any other
        network failure.
        """
        session = await self._ensure_session()
        start_time = time.time()

        try:
            response = await session.get(url, timeout=httpx.Timeout(timeout_ms / 1000.0))
        except httpx.TimeoutException as e:
            raise ProbeTimeoutError(f"Request timeout after {timeout_ms}ms: {url}", url=url) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        elapsed = time.time() - start_time
        self.logger.debug(f"GET {url} -> {response.status_code} in {elapsed:.3f}s")

        return RawResponse(
            status_code=response.status_code,
            reason=response.reason_phrase or "",
            headers=list(response.headers.multi_items()),
            body=response.text,
            url=str(response.url),
            elapsed=elapsed,
        )
