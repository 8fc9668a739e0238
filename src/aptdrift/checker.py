"""Cross-repository ordering checks over the aggregated version matrix."""

import logging

from aptdrift.aggregate import PackageVersions, VersionMatrix
from aptdrift.config import RepoKind
from aptdrift.versions import compare_versions

logger = logging.getLogger(__name__)


def check_package(info: PackageVersions) -> int:
    """Attach diagnostics to the slots of one package that break the repository order.

    A kind holding an older version than a kind it must be newer than is marked
    "Older than ...". A kind missing a package that an older kind has marks the older
    kind's slot with "Not in ...", except when the older kind is upstream, since not
    every package tracks upstream.

    Returns:
        Number of diagnostics added
    """
    added = 0
    for kind in RepoKind:
        current = info.get(kind)
        for older_kind in kind.must_be_newer_than:
            older = info.get(older_kind)
            if older is None:
                continue
            if current is not None:
                if compare_versions(current.version, older.version) < 0:
                    current.diagnostics.append(f"Older than {older_kind.label}")
                    added += 1
            elif not older_kind.is_upstream:
                older.diagnostics.append(f"Not in {kind.label}")
                added += 1
    return added


def check(matrix: VersionMatrix) -> int:
    """Run the ordering checks over every package, returning the number of findings."""
    findings = sum(check_package(info) for info in matrix.values())
    logger.debug(f"Consistency check found {findings} problems across {len(matrix)} packages")
    return findings


def count_findings(matrix: VersionMatrix) -> int:
    return sum(info.diagnostic_count for info in matrix.values())
