"""Concurrent fetch of every configured repository, suite and component."""

import asyncio
import logging
from collections.abc import Iterable, Iterator
from contextlib import nullcontext

import httpx
from pydantic import BaseModel, Field

from aptdrift.config import Codename, RepoKind, Suite
from aptdrift.constants import MAX_CONCURRENCY
from aptdrift.errors import ParseError
from aptdrift.fetcher import AptRepository, new_http_client
from aptdrift.models import Package, Release, Source

logger = logging.getLogger(__name__)


class ComponentListing(BaseModel):
    component: str
    sources: list[Source] = Field(default_factory=list)
    # architecture -> binary packages, only filled when the Packages path is enabled
    packages: dict[str, list[Package]] = Field(default_factory=dict)


class SuiteListing(BaseModel):
    suite: Suite
    release: Release
    components: list[ComponentListing] = Field(default_factory=list)


class CodenameListing(BaseModel):
    codename: Codename
    suites: list[SuiteListing] = Field(default_factory=list)


class KindListing(BaseModel):
    """Everything fetched from one repository kind, in configuration order."""

    kind: RepoKind
    codenames: list[CodenameListing] = Field(default_factory=list)

    def iter_sources(self) -> Iterator[tuple[Codename, Source]]:
        for codename_listing in self.codenames:
            for suite_listing in codename_listing.suites:
                for component_listing in suite_listing.components:
                    for source in component_listing.sources:
                        yield codename_listing.codename, source


class Inventory(BaseModel):
    kinds: list[KindListing] = Field(default_factory=list)


def permitted_architectures(kind: RepoKind, release: Release) -> list[str]:
    """Architectures both declared by the manifest and allowed for the repository kind."""
    allowed = {str(arch) for arch in kind.allowed_archs}
    return [arch for arch in release.architectures or [] if arch in allowed]


def _first_error(error: BaseException) -> BaseException:
    while isinstance(error, BaseExceptionGroup):
        error = error.exceptions[0]
    return error


async def fetch_suite(
    repo: AptRepository,
    kind: RepoKind,
    suite: Suite,
    include_packages: bool = False,
) -> SuiteListing:
    """Fetch a suite's manifest, then every component listing it declares.

    Args:
        repo: Client for the repository serving the suite
        kind: The repository kind, used for the architecture filter
        suite: Suite to fetch
        include_packages: Also fetch ``Packages.gz`` for each permitted architecture

    Returns:
        The manifest with its component listings, in manifest order
    """
    release = await repo.release(suite)
    if release.components is None:
        raise ParseError(f"Release for {suite} at {repo.url} is missing Components")
    if release.architectures is None:
        raise ParseError(f"Release for {suite} at {repo.url} is missing Architectures")
    architectures = permitted_architectures(kind, release)

    async with asyncio.TaskGroup() as tg:
        pending = [
            (
                component,
                tg.create_task(repo.sources(suite, component)),
                {
                    arch: tg.create_task(repo.packages(suite, component, arch))
                    for arch in (architectures if include_packages else [])
                },
            )
            for component in release.components
        ]

    components = []
    for component, sources_task, package_tasks in pending:
        listing = ComponentListing(
            component=component,
            sources=sources_task.result(),
            packages={arch: task.result() for arch, task in package_tasks.items()},
        )
        logger.info(f"{kind.label} {suite}/{component}: {len(listing.sources)} sources")
        for arch, packages in listing.packages.items():
            if packages:
                logger.info(f"{kind.label} {suite}/{component}/{arch}: {len(packages)} packages")
        components.append(listing)

    return SuiteListing(suite=suite, release=release, components=components)


async def collect_inventory(
    kinds: Iterable[RepoKind] | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    max_concurrency: int = MAX_CONCURRENCY,
    include_packages: bool = False,
) -> Inventory:
    """Fetch manifests and source listings for every configured repository in parallel.

    Any failed fetch aborts the whole collection; the first error is re-raised as-is.

    Args:
        kinds: Repository kinds to fetch, defaults to all of them
        client: HTTP client to use, a new one is created (and closed) if not given
        max_concurrency: Upper bound on in-flight requests, 0 for no limit
        include_packages: Also fetch binary Packages listings

    Returns:
        The fetched data nested as kind -> codename -> suite -> component
    """
    kinds = list(RepoKind) if kinds is None else list(kinds)
    limiter = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
    logger.info(f"Fetching repository data for {len(kinds)} repositories in parallel")

    async with (nullcontext(client) if client is not None else new_http_client()) as http:
        try:
            async with asyncio.TaskGroup() as tg:
                pending = []
                for kind in kinds:
                    repo = AptRepository(kind.url, http, limiter)
                    pending.append(
                        (
                            kind,
                            [
                                (
                                    codename,
                                    [
                                        tg.create_task(fetch_suite(repo, kind, suite, include_packages))
                                        for suite in kind.suites(codename)
                                    ],
                                )
                                for codename in kind.codenames
                            ],
                        )
                    )
        except ExceptionGroup as eg:
            raise _first_error(eg) from None

    return Inventory(
        kinds=[
            KindListing(
                kind=kind,
                codenames=[
                    CodenameListing(codename=codename, suites=[task.result() for task in tasks])
                    for codename, tasks in codename_tasks
                ],
            )
            for kind, codename_tasks in pending
        ]
    )
