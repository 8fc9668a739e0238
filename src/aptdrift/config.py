"""Static description of the repositories making up the promotion pipeline."""

from enum import StrEnum
from typing import NamedTuple

from pydantic.dataclasses import dataclass

from aptdrift.errors import ConfigError

GITHUB_ORG = "pop-os"

GITHUB_PR_FILTER_BASE = f"is:pr is:open archived:false org:{GITHUB_ORG}"
# fmt: off
GITHUB_PR_FILTERS: list[tuple[str, str]] = [
    ("Needs review", "draft:false review:required"),
    ("Changes requested", "draft:false review:changes_requested"),
    ("Approved", "draft:false review:approved"),
    ("Draft", "draft:true"),
]
# fmt: on


class Codename(StrEnum):
    JAMMY = "jammy"
    NOBLE = "noble"
    RESOLUTE = "resolute"


class SuiteKind(StrEnum):
    """Suite variant, rendered as the suffix appended to the codename."""

    STANDARD = ""
    SECURITY = "-security"
    UPDATES = "-updates"
    BACKPORTS = "-backports"


class Suite(NamedTuple):
    codename: Codename
    kind: SuiteKind = SuiteKind.STANDARD

    def __str__(self) -> str:
        return f"{self.codename.value}{self.kind.value}"


class Arch(StrEnum):
    AMD64 = "amd64"
    ARM64 = "arm64"
    ARMHF = "armhf"
    I386 = "i386"


class RepoKind(StrEnum):
    """One feed of the pipeline. Declaration order is report column order."""

    RELEASE = "release"
    STAGING = "staging"
    STAGING_UBUNTU = "staging-ubuntu"
    STABLE = "stable"
    PRE_STABLE = "pre-stable"
    UBUNTU = "ubuntu"

    @property
    def config(self) -> "RepoConfig":
        return REPO_CONFIGS[self]

    @property
    def label(self) -> str:
        return self.config.label

    @property
    def url(self) -> str:
        return self.config.url

    @property
    def codenames(self) -> list[Codename]:
        return list(self.config.codenames)

    @property
    def allowed_archs(self) -> list[Arch]:
        return list(self.config.allowed_archs)

    @property
    def must_be_newer_than(self) -> list["RepoKind"]:
        return list(self.config.must_be_newer_than)

    @property
    def is_upstream(self) -> bool:
        return self is UPSTREAM_KIND

    def suites(self, codename: Codename) -> list[Suite]:
        return [Suite(codename, kind) for kind in self.config.suite_kinds]


@dataclass(frozen=True)
class RepoConfig:
    """Everything needed to fetch and compare one repository kind."""

    label: str
    url: str
    codenames: tuple[Codename, ...]
    suite_kinds: tuple[SuiteKind, ...] = (SuiteKind.STANDARD,)
    allowed_archs: tuple[Arch, ...] = (Arch.AMD64, Arch.ARM64, Arch.ARMHF, Arch.I386)
    # kinds whose version this kind must be newer than or equal to
    must_be_newer_than: tuple[RepoKind, ...] = ()


UPSTREAM_KIND = RepoKind.UBUNTU

ALL_CODENAMES = (Codename.JAMMY, Codename.NOBLE, Codename.RESOLUTE)
PPA_CODENAMES = (Codename.JAMMY, Codename.NOBLE)

REPO_CONFIGS: dict[RepoKind, RepoConfig] = {
    RepoKind.RELEASE: RepoConfig(
        label="Release",
        url="https://apt.pop-os.org/release/",
        codenames=ALL_CODENAMES,
        must_be_newer_than=(RepoKind.UBUNTU,),
    ),
    RepoKind.STAGING: RepoConfig(
        label="Staging",
        url="https://apt.pop-os.org/staging/master/",
        codenames=ALL_CODENAMES,
        must_be_newer_than=(RepoKind.RELEASE, RepoKind.UBUNTU),
    ),
    RepoKind.STAGING_UBUNTU: RepoConfig(
        label="Staging Ubuntu",
        url="https://apt.pop-os.org/staging-ubuntu/",
        codenames=ALL_CODENAMES,
        must_be_newer_than=(RepoKind.UBUNTU,),
    ),
    RepoKind.STABLE: RepoConfig(
        label="Stable",
        url="https://ppa.launchpadcontent.net/system76-dev/stable/ubuntu/",
        codenames=PPA_CODENAMES,
        must_be_newer_than=(RepoKind.UBUNTU,),
    ),
    RepoKind.PRE_STABLE: RepoConfig(
        label="Pre-Stable",
        url="https://ppa.launchpadcontent.net/system76-dev/pre-stable/ubuntu/",
        codenames=PPA_CODENAMES,
        must_be_newer_than=(RepoKind.STABLE, RepoKind.UBUNTU),
    ),
    RepoKind.UBUNTU: RepoConfig(
        label="Ubuntu",
        url="https://apt.pop-os.org/ubuntu/",
        codenames=ALL_CODENAMES,
        suite_kinds=(SuiteKind.STANDARD, SuiteKind.SECURITY, SuiteKind.UPDATES, SuiteKind.BACKPORTS),
        allowed_archs=(Arch.AMD64, Arch.I386),
    ),
}


def check_partial_order(configs: dict[RepoKind, RepoConfig]) -> None:
    """Verify the "must be newer than" edges form a DAG whose only sink is the upstream kind.

    Args:
        configs: The table to validate, keyed by every RepoKind

    Raises:
        ConfigError: if a kind is missing, an edge is a cycle, or the sink is not unique
    """
    missing = [kind for kind in RepoKind if kind not in configs]
    if missing:
        raise ConfigError(f"No repository config for: {', '.join(missing)}")

    sinks = [kind for kind, cfg in configs.items() if not cfg.must_be_newer_than]
    if sinks != [UPSTREAM_KIND]:
        raise ConfigError(f"Expected {UPSTREAM_KIND} to be the only kind without older kinds, got {sinks}")

    # depth-first search, "visiting" marks the current path
    state: dict[RepoKind, str] = {}

    def visit(kind: RepoKind, path: list[RepoKind]) -> None:
        if state.get(kind) == "done":
            return
        if state.get(kind) == "visiting":
            cycle = " -> ".join(str(k) for k in [*path, kind])
            raise ConfigError(f"Repository order contains a cycle: {cycle}")
        state[kind] = "visiting"
        for older in configs[kind].must_be_newer_than:
            visit(older, [*path, kind])
        state[kind] = "done"

    for kind in configs:
        visit(kind, [])


check_partial_order(REPO_CONFIGS)
