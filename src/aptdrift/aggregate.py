"""Fold fetched source listings into a per-(package, codename) version matrix."""

import logging
from collections.abc import Iterator
from typing import NamedTuple

from pydantic import BaseModel, Field

from aptdrift.config import GITHUB_ORG, Codename, RepoKind
from aptdrift.errors import InvariantViolation
from aptdrift.models import Source
from aptdrift.orchestrator import Inventory
from aptdrift.versions import compare_versions

logger = logging.getLogger(__name__)

type AggregateKey = tuple[str, Codename]


class CommitRef(NamedTuple):
    """Upstream git commit a source package was built from."""

    repo: str
    commit: str

    @property
    def url(self) -> str:
        return f"https://github.com/{GITHUB_ORG}/{self.repo}/commit/{self.commit}"


def parse_commit_ref(directory: str | None) -> CommitRef | None:
    """Recover the commit from a ``pool/<codename>/<repo>/<commit>/...`` directory.

    Examples:
        >>> parse_commit_ref("pool/noble/foo/abc123/foo_1.0.orig.tar.gz")
        CommitRef(repo='foo', commit='abc123')
        >>> parse_commit_ref("pool/noble") is None
        True
    """
    if not directory:
        return None
    parts = directory.strip("/").split("/")
    if len(parts) < 4 or parts[0] != "pool":
        return None
    if not all(parts[1:4]):
        return None
    _codename, repo, commit = parts[1:4]
    return CommitRef(repo, commit)


class VersionSlot(BaseModel):
    """The version of one package known to one repository kind."""

    kind: RepoKind
    codename: Codename
    version: str
    directory: str | None = None
    diagnostics: list[str] = Field(default_factory=list)

    @property
    def commit(self) -> CommitRef | None:
        return parse_commit_ref(self.directory)


class PackageVersions(BaseModel):
    """All known versions of a package for one codename, at most one per repository kind."""

    package: str
    codename: Codename
    slots: dict[RepoKind, VersionSlot] = Field(default_factory=dict)

    @property
    def key(self) -> AggregateKey:
        return self.package, self.codename

    def get(self, kind: RepoKind) -> VersionSlot | None:
        return self.slots.get(kind)

    def iter_slots(self) -> Iterator[tuple[RepoKind, VersionSlot | None]]:
        """Yield every repository kind in declaration order with its slot, if any."""
        for kind in RepoKind:
            yield kind, self.slots.get(kind)

    def insert(self, slot: VersionSlot) -> None:
        """Set the slot for a repository kind that may only hold one version per key.

        Raises:
            InvariantViolation: if the kind already has a version for this package and codename
        """
        if (existing := self.slots.get(slot.kind)) is not None:
            raise InvariantViolation(
                f"{slot.kind.label} has more than one source record for {self.package} ({self.codename}): "
                f"{existing.version} and {slot.version}"
            )
        self.slots[slot.kind] = slot

    def offer(self, slot: VersionSlot) -> bool:
        """Keep ``slot`` if its kind has no version yet or it is newer than the current one.

        Returns:
            True if the slot was stored
        """
        existing = self.slots.get(slot.kind)
        if existing is not None and compare_versions(slot.version, existing.version) <= 0:
            return False
        self.slots[slot.kind] = slot
        return True

    @property
    def diagnostic_count(self) -> int:
        return sum(len(slot.diagnostics) for slot in self.slots.values())


type VersionMatrix = dict[AggregateKey, PackageVersions]


def add_source(matrix: VersionMatrix, kind: RepoKind, codename: Codename, source: Source) -> None:
    """Record one source package in the matrix.

    Upstream records only fill keys some other kind already produced and are merged down to
    the highest version across all upstream suites.
    """
    if not source.package or not source.version:
        logger.debug(f"Skipping {kind.label} {codename} source without package or version: {source}")
        return

    key = (source.package, codename)
    slot = VersionSlot(kind=kind, codename=codename, version=source.version, directory=source.directory)
    if kind.is_upstream:
        if (info := matrix.get(key)) is not None:
            info.offer(slot)
        return

    if key not in matrix:
        matrix[key] = PackageVersions(package=source.package, codename=codename)
    matrix[key].insert(slot)


def aggregate(inventory: Inventory) -> VersionMatrix:
    """Build the version matrix, ordered by package name then codename.

    Raises:
        InvariantViolation: if a non-upstream kind lists a package twice for one codename
    """
    matrix: VersionMatrix = {}
    # upstream last, it only augments keys found elsewhere
    listings = sorted(inventory.kinds, key=lambda listing: listing.kind.is_upstream)
    for listing in listings:
        for codename, source in listing.iter_sources():
            add_source(matrix, listing.kind, codename, source)

    logger.info(f"Aggregated {len(matrix)} package/codename pairs")
    return dict(sorted(matrix.items(), key=lambda item: (item[0][0], str(item[0][1]))))
