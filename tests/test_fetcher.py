"""Tests for the single-repository HTTP client."""

import httpx
import pytest
from conftest import gzip_text, release_stanza, source_stanza

from aptdrift.config import Codename, Suite, SuiteKind
from aptdrift.errors import DecodeError, ParseError, TransportError
from aptdrift.fetcher import (
    AptRepository,
    build_packages_path,
    build_release_path,
    build_sources_path,
)

BASE = "https://repo.example/ubuntu"


class TestPaths:
    def test_release_path(self):
        assert build_release_path(Suite(Codename.NOBLE, SuiteKind.UPDATES)) == "dists/noble-updates/Release"

    def test_sources_path(self):
        assert build_sources_path("noble", "main") == "dists/noble/main/source/Sources.gz"

    def test_packages_path(self):
        assert build_packages_path("noble", "main", "amd64") == "dists/noble/main/binary-amd64/Packages.gz"

    def test_base_url_gets_trailing_slash(self):
        repo = AptRepository(BASE, client=None)
        assert repo.build_url("dists/noble/Release") == f"{BASE}/dists/noble/Release"


class TestAptRepository:
    @pytest.mark.asyncio
    async def test_release(self, archive):
        archive.add(f"{BASE}/dists/noble/Release", release_stanza("noble", "main universe", "amd64 i386"))
        async with archive.client() as client:
            release = await AptRepository(BASE, client).release(Suite(Codename.NOBLE))
        assert release.codename == "noble"
        assert release.components == ["main", "universe"]
        assert release.architectures == ["amd64", "i386"]
        assert archive.requests == [f"{BASE}/dists/noble/Release"]

    @pytest.mark.asyncio
    async def test_release_with_two_stanzas(self, archive):
        archive.add(f"{BASE}/dists/noble/Release", release_stanza("noble") + b"\n" + release_stanza("noble"))
        async with archive.client() as client:
            with pytest.raises(ParseError, match="found 2"):
                await AptRepository(BASE, client).release("noble")

    @pytest.mark.asyncio
    async def test_empty_release(self, archive):
        archive.add(f"{BASE}/dists/noble/Release", b"\n")
        async with archive.client() as client:
            with pytest.raises(ParseError, match="found 0"):
                await AptRepository(BASE, client).release("noble")

    @pytest.mark.asyncio
    async def test_sources(self, archive):
        body = "\n".join([source_stanza("foo", "1.0-1"), source_stanza("bar", "2.0", "pool/noble/bar/def456")])
        archive.add(f"{BASE}/dists/noble/main/source/Sources.gz", gzip_text(body))
        async with archive.client() as client:
            sources = await AptRepository(BASE, client).sources("noble", "main")
        assert [(s.package, s.version, s.directory) for s in sources] == [
            ("foo", "1.0-1", None),
            ("bar", "2.0", "pool/noble/bar/def456"),
        ]

    @pytest.mark.asyncio
    async def test_packages(self, archive):
        body = "Package: foo-dev\nSource: foo\nVersion: 1.0-1\n\nPackage: foo\nVersion: 1.0-1\n"
        archive.add(f"{BASE}/dists/noble/main/binary-amd64/Packages.gz", gzip_text(body))
        async with archive.client() as client:
            packages = await AptRepository(BASE, client).packages("noble", "main", "amd64")
        assert [p.package for p in packages] == ["foo-dev", "foo"]
        assert packages[0].source == "foo"

    @pytest.mark.asyncio
    async def test_not_found(self, archive):
        async with archive.client() as client:
            with pytest.raises(TransportError) as excinfo:
                await AptRepository(BASE, client).sources("noble", "main")
        assert excinfo.value.status_code == 404
        assert excinfo.value.url == f"{BASE}/dists/noble/main/source/Sources.gz"

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
            with pytest.raises(TransportError, match="ConnectError"):
                await AptRepository(BASE, client).release("noble")

    @pytest.mark.asyncio
    async def test_corrupt_listing(self, archive):
        archive.add(f"{BASE}/dists/noble/main/source/Sources.gz", b"Package: not gzipped\n")
        async with archive.client() as client:
            with pytest.raises(DecodeError):
                await AptRepository(BASE, client).sources("noble", "main")

    @pytest.mark.asyncio
    async def test_duplicate_key_in_listing(self, archive):
        archive.add(
            f"{BASE}/dists/noble/main/source/Sources.gz",
            gzip_text("Package: foo\nVersion: 1\nVersion: 2\n"),
        )
        async with archive.client() as client:
            with pytest.raises(ParseError, match="Duplicate key"):
                await AptRepository(BASE, client).sources("noble", "main")
