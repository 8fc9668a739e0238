"""Tests for the static repository table."""

import pytest

from aptdrift.config import (
    REPO_CONFIGS,
    UPSTREAM_KIND,
    Arch,
    Codename,
    RepoConfig,
    RepoKind,
    Suite,
    SuiteKind,
    check_partial_order,
)
from aptdrift.errors import ConfigError


class TestSuite:
    def test_plain_suite_name(self):
        assert str(Suite(Codename.NOBLE)) == "noble"

    @pytest.mark.parametrize(
        "kind, name",
        [
            (SuiteKind.SECURITY, "jammy-security"),
            (SuiteKind.UPDATES, "jammy-updates"),
            (SuiteKind.BACKPORTS, "jammy-backports"),
        ],
    )
    def test_variant_suffix(self, kind, name):
        assert str(Suite(Codename.JAMMY, kind)) == name


class TestRepoKind:
    def test_every_kind_is_configured(self):
        assert set(REPO_CONFIGS) == set(RepoKind)

    def test_upstream_expands_to_all_pockets(self):
        assert [str(suite) for suite in RepoKind.UBUNTU.suites(Codename.NOBLE)] == [
            "noble",
            "noble-security",
            "noble-updates",
            "noble-backports",
        ]

    def test_other_kinds_have_one_suite(self):
        for kind in RepoKind:
            if kind is not UPSTREAM_KIND:
                assert kind.suites(Codename.NOBLE) == [Suite(Codename.NOBLE, SuiteKind.STANDARD)]

    def test_upstream_architectures(self):
        assert RepoKind.UBUNTU.allowed_archs == [Arch.AMD64, Arch.I386]

    def test_urls_are_directories(self):
        for kind in RepoKind:
            assert kind.url.endswith("/")

    def test_release_must_be_newer_than_ubuntu(self):
        assert RepoKind.UBUNTU in RepoKind.RELEASE.must_be_newer_than
        assert RepoKind.RELEASE in RepoKind.STAGING.must_be_newer_than

    def test_only_upstream_is_upstream(self):
        assert [kind for kind in RepoKind if kind.is_upstream] == [RepoKind.UBUNTU]


class TestPartialOrder:
    """The "must be newer than" edges form a DAG ending at upstream."""

    def test_default_table_is_valid(self):
        check_partial_order(REPO_CONFIGS)

    def test_cycle_is_rejected(self):
        configs = dict(REPO_CONFIGS)
        configs[RepoKind.RELEASE] = RepoConfig(
            label="Release",
            url="https://example.invalid/",
            codenames=(Codename.NOBLE,),
            must_be_newer_than=(RepoKind.STAGING,),
        )
        with pytest.raises(ConfigError, match="cycle"):
            check_partial_order(configs)

    def test_second_sink_is_rejected(self):
        configs = dict(REPO_CONFIGS)
        configs[RepoKind.STABLE] = RepoConfig(
            label="Stable",
            url="https://example.invalid/",
            codenames=(Codename.NOBLE,),
        )
        with pytest.raises(ConfigError, match="only kind"):
            check_partial_order(configs)

    def test_missing_kind_is_rejected(self):
        configs = dict(REPO_CONFIGS)
        del configs[RepoKind.PRE_STABLE]
        with pytest.raises(ConfigError, match="pre-stable"):
            check_partial_order(configs)
