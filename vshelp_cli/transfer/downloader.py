"""
Handles the low-level downloading of package files over HTTP with retry logic
and adaptive chunk sizing.
"""

import asyncio
import logging
import os
import time
from collections.abc import Callable

import aiofiles
import aiohttp

from vshelp_cli.api.client import resolve_url
from vshelp_cli.api.proxy import ProxySettings
from vshelp_cli.exceptions import FilesystemError, NetworkError
from vshelp_cli.models.config import DEFAULT_PACKAGES_BASE_URL

log = logging.getLogger(__name__)

# Receives (bytes received so far, total bytes or -1 when unknown)
TransferCallback = Callable[[int, int], None]


class PackageDownloader:
    """
    A low-level file downloader with retry logic and adaptive chunk sizing.

    The downloader owns its aiohttp session; use it as an async context
    manager so the session is released on every exit path.
    """

    MIN_CHUNK_SIZE = 131072  # 128 KB
    MAX_CHUNK_SIZE = 1048576  # 1 MB

    def __init__(
        self,
        base_url: str = DEFAULT_PACKAGES_BASE_URL,
        proxy: ProxySettings | None = None,
        max_attempts: int = 3,
        base_delay: float = 1.5,
    ):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.proxy = proxy
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._chunk_size = self.MIN_CHUNK_SIZE
        self._session: aiohttp.ClientSession | None = None

    async def _initialize_session(self) -> None:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
            self._session = aiohttp.ClientSession(timeout=timeout)
            log.debug("Created package download session.")

    async def close(self) -> None:
        """Closes the download session."""
        if self._session and not self._session.closed:
            await self._session.close()
            log.debug("Package download session closed.")

    async def __aenter__(self) -> "PackageDownloader":
        await self._initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _adapt_chunk_size(self, current_speed_bps: float) -> int:
        """Adapts the chunk size based on current network speed."""
        if current_speed_bps > 10 * 1024 * 1024:  # > 10 MB/s
            self._chunk_size = self.MAX_CHUNK_SIZE
        elif current_speed_bps > 5 * 1024 * 1024:  # > 5 MB/s
            self._chunk_size = 524288  # 512 KB
        elif current_speed_bps > 1 * 1024 * 1024:  # > 1 MB/s
            self._chunk_size = 262144  # 256 KB
        else:
            self._chunk_size = self.MIN_CHUNK_SIZE
        return self._chunk_size

    async def download_file(
        self,
        link: str,
        destination_path: str | os.PathLike,
        total_size_estimate: int = -1,
        on_progress: TransferCallback | None = None,
    ) -> int:
        """
        Streams a package to disk, reporting progress after every chunk.

        Args:
            link: Package link, relative to the base URL or absolute.
            destination_path: File to create or overwrite.
            total_size_estimate: Size used when the server sends no Content-Length.
            on_progress: Called with (bytes received, total bytes) per chunk.

        Returns:
            The number of bytes written.

        Raises:
            NetworkError: If the transfer still fails after all attempts.
            FilesystemError: If the destination cannot be written.
        """
        await self._initialize_session()
        url = resolve_url(self.base_url, link)
        request_kwargs = self.proxy.request_kwargs() if self.proxy else {}
        file_name = os.path.basename(destination_path)

        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self._session.get(
                    url, allow_redirects=True, **request_kwargs
                ) as response:
                    response.raise_for_status()

                    effective_total_size = int(
                        response.headers.get("Content-Length", total_size_estimate)
                    )

                    async with aiofiles.open(destination_path, "wb") as f:
                        bytes_downloaded = 0
                        last_speed_check = time.monotonic()
                        last_speed_bytes = 0
                        chunk_size = self._chunk_size

                        async for chunk in response.content.iter_chunked(chunk_size):
                            await f.write(chunk)
                            bytes_downloaded += len(chunk)

                            now = time.monotonic()
                            if now - last_speed_check > 2.0:
                                speed = (bytes_downloaded - last_speed_bytes) / (
                                    now - last_speed_check
                                )
                                chunk_size = self._adapt_chunk_size(speed)
                                last_speed_check = now
                                last_speed_bytes = bytes_downloaded

                            if on_progress:
                                on_progress(bytes_downloaded, effective_total_size)
                return bytes_downloaded
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{file_name}' failed: {e}. Retrying..."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))
            except OSError as e:
                raise FilesystemError(f"Could not write '{destination_path}': {e}") from e

        raise NetworkError(
            f"Download of '{file_name}' from '{url}' failed: {last_exception}"
        ) from last_exception
