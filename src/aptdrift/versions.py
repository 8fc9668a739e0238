"""Debian version ordering (epoch, upstream, revision; ``~`` sorts before everything)."""

from functools import cmp_to_key

from debian.debian_support import version_compare

from aptdrift.errors import ParseError


def compare_versions(a: str, b: str) -> int:
    """Compare two Debian version strings.

    Returns:
        -1, 0 or 1 as ``a`` is older than, equal to, or newer than ``b``
    """
    try:
        result = version_compare(a, b)
    except ValueError as e:
        raise ParseError(f"Cannot compare versions {a!r} and {b!r}: {e}") from e
    return (result > 0) - (result < 0)


version_key = cmp_to_key(compare_versions)
