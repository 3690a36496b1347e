"""
Async client for the help service's catalog API: the locales published for a
Visual Studio version and the book catalog of one locale.
"""

import asyncio
import logging
import time

import aiohttp

from vshelp_cli.exceptions import InvalidArgumentError, NetworkError
from vshelp_cli.index.parser import parse_catalog, parse_locales
from vshelp_cli.models.catalog import BookGroup, Locale
from vshelp_cli.models.config import DEFAULT_CATALOG_BASE_URL

from .proxy import ProxySettings

log = logging.getLogger(__name__)


def resolve_url(base_url: str, link: str) -> str:
    """Joins a catalog link with a base URL; absolute links are kept as-is."""
    if link.startswith(("http://", "https://")):
        return link
    return base_url + link.lstrip("/")


class CatalogClient:
    """
    Fetches catalog documents and hands them to the index parser.

    Use as an async context manager so the underlying session is always
    released.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_CATALOG_BASE_URL,
        proxy: ProxySettings | None = None,
        max_attempts: int = 3,
        base_delay: float = 1.5,
    ):
        """
        Initializes the catalog client.

        Args:
            base_url: Root of the catalog service, ending with '/'.
            proxy: Optional forward proxy for every request.
            max_attempts: How many times a request is tried before giving up.
            base_delay: Initial backoff between attempts, doubled on each retry.
        """
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.proxy = proxy
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._session: aiohttp.ClientSession | None = None

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available with compression enabled."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept-Encoding": "gzip, deflate"},
                timeout=aiohttp.ClientTimeout(total=60, connect=15, sock_read=30),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "CatalogClient":
        await self._initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def fetch(self, path: str) -> bytes:
        """
        Downloads a catalog document relative to the base URL.

        Raises:
            NetworkError: If the request still fails after all attempts.
        """
        await self._initialize_session()
        url = resolve_url(self.base_url, path)
        request_kwargs = self.proxy.request_kwargs() if self.proxy else {}

        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            start_time = time.monotonic()
            try:
                async with self._session.get(url, **request_kwargs) as response:
                    response.raise_for_status()
                    data = await response.read()
                duration_ms = (time.monotonic() - start_time) * 1000
                log.debug(f"Fetched {url} ({len(data)} bytes) in {duration_ms:.0f} ms")
                return data
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Catalog request attempt {attempt}/{self.max_attempts} for "
                    f"'{url}' failed: {e}"
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        raise NetworkError(
            f"Could not fetch catalog '{url}': {last_exception}"
        ) from last_exception

    async def load_locales(self, vs_version: str) -> list[Locale]:
        """Retrieves the locales the help is published in for a version token."""
        if not vs_version:
            raise InvalidArgumentError("vs_version is required.")
        log.debug(f"Downloading locales list from {self.base_url}catalogs/{vs_version}")
        return parse_locales(await self.fetch(f"catalogs/{vs_version}"))

    async def load_books(self, catalog_link: str) -> list[BookGroup]:
        """Retrieves the book groups of the locale whose catalog lives at the link."""
        if not catalog_link:
            raise InvalidArgumentError("catalog_link is required.")
        log.debug(f"Downloading books list from {self.base_url}{catalog_link}")
        return parse_catalog(await self.fetch(catalog_link))
