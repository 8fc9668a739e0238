"""HTTP client for the metadata files of a single APT repository."""

import asyncio
import logging
from collections.abc import Callable
from contextlib import nullcontext
from urllib.parse import urljoin

import httpx

from aptdrift.config import Suite
from aptdrift.constants import HTTP_TIMEOUT, USER_AGENT
from aptdrift.errors import ParseError, TransportError
from aptdrift.models import Package, Release, Source
from aptdrift.stanza import aiter_stanzas, parse_package, parse_release, parse_source

logger = logging.getLogger(__name__)


def new_http_client(**kwargs) -> httpx.AsyncClient:
    """Create the shared client used for all repository fetches."""
    kwargs.setdefault("follow_redirects", True)
    kwargs.setdefault("timeout", HTTP_TIMEOUT)
    kwargs.setdefault("headers", {"User-Agent": USER_AGENT})
    return httpx.AsyncClient(**kwargs)


def build_release_path(suite: Suite | str) -> str:
    return f"dists/{suite}/Release"


def build_sources_path(suite: Suite | str, component: str) -> str:
    return f"dists/{suite}/{component}/source/Sources.gz"


def build_packages_path(suite: Suite | str, component: str, architecture: str) -> str:
    return f"dists/{suite}/{component}/binary-{architecture}/Packages.gz"


class AptRepository:
    """Fetches and decodes Release, Sources and Packages files relative to a base URL."""

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient,
        limiter: asyncio.Semaphore | None = None,
    ):
        """Initialize the repository client.

        Args:
            url: Base URL of the repository (the directory containing ``dists/``)
            client: HTTP client to issue requests with, owned by the caller
            limiter: Optional semaphore bounding concurrent requests across repositories
        """
        self.url = url if url.endswith("/") else f"{url}/"
        self.client = client
        self.limiter = limiter

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.url!r})"

    def build_url(self, path: str) -> str:
        return urljoin(self.url, path)

    async def _get_control[T](
        self,
        path: str,
        parse: Callable[[str], T],
        compressed: bool = False,
    ) -> list[T]:
        """GET a control file and map each of its stanzas with ``parse``.

        The body is decompressed and split into stanzas as it arrives, so only one
        stanza is held undecoded at a time.
        """
        url = self.build_url(path)
        async with self.limiter if self.limiter is not None else nullcontext():
            try:
                async with self.client.stream("GET", url) as response:
                    response.raise_for_status()
                    records = [
                        parse(stanza) async for stanza in aiter_stanzas(response.aiter_bytes(), compressed)
                    ]
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                raise TransportError(url, f"HTTP {status}", status_code=status) from e
            except httpx.HTTPError as e:
                raise TransportError(url, f"Request failed ({e.__class__.__name__}: {e})") from e

        logger.debug(f"Fetched {len(records)} stanzas from {url}")
        return records

    async def release(self, suite: Suite | str) -> Release:
        """Fetch the Release manifest for a suite.

        Raises:
            ParseError: if the manifest does not contain exactly one stanza
        """
        path = build_release_path(suite)
        releases = await self._get_control(path, parse_release)
        if len(releases) != 1:
            raise ParseError(f"Expected one Release stanza at {self.build_url(path)}, found {len(releases)}")
        return releases[0]

    async def sources(self, suite: Suite | str, component: str) -> list[Source]:
        """Fetch and decode ``Sources.gz`` for a suite component."""
        return await self._get_control(build_sources_path(suite, component), parse_source, compressed=True)

    async def packages(self, suite: Suite | str, component: str, architecture: str) -> list[Package]:
        """Fetch and decode ``Packages.gz`` for a suite component and architecture."""
        return await self._get_control(
            build_packages_path(suite, component, architecture),
            parse_package,
            compressed=True,
        )
