import asyncio
import gzip

import httpx
import pytest

from aptdrift.config import RepoKind


def gzip_text(text: str) -> bytes:
    return gzip.compress(text.encode("utf-8"))


def release_stanza(codename: str, components: str = "main", architectures: str = "amd64") -> bytes:
    return (
        f"Origin: test\nCodename: {codename}\nArchitectures: {architectures}\nComponents: {components}\n"
        f"Description: test archive\n"
    ).encode()


def source_stanza(package: str, version: str, directory: str | None = None) -> str:
    lines = [f"Package: {package}", f"Version: {version}", "Architectures: any"]
    if directory:
        lines.append(f"Directory: {directory}")
    return "\n".join(lines) + "\n"


class FakeArchive:
    """In-memory set of repository files served through ``httpx.MockTransport``.

    Unknown URLs answer 404. ``delays`` maps URLs to a sleep before answering.
    """

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.delays: dict[str, float] = {}
        self.requests: list[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    def add(self, url: str, body: bytes) -> None:
        self.files[url] = body

    def add_suite(
        self,
        kind: RepoKind,
        suite: str,
        codename: str,
        sources: dict[str, list[str]] | None = None,
        architectures: str = "amd64",
    ) -> None:
        """Serve a Release manifest and one Sources.gz per component for a suite."""
        sources = sources if sources is not None else {"main": []}
        base = f"{kind.url}dists/{suite}/"
        self.add(f"{base}Release", release_stanza(codename, " ".join(sources), architectures))
        for component, stanzas in sources.items():
            self.add(f"{base}{component}/source/Sources.gz", gzip_text("\n".join(stanzas)))

    def add_kind(self, kind: RepoKind, sources: dict[tuple[str, str], dict[str, list[str]]] | None = None):
        """Serve every suite of a kind, with ``sources`` keyed by ``(suite, component)`` overrides."""
        sources = sources or {}
        for codename in kind.codenames:
            for suite in kind.suites(codename):
                per_component = {
                    component: stanzas
                    for (suite_name, component), stanzas in sources.items()
                    if suite_name == str(suite)
                }
                self.add_suite(kind, str(suite), codename.value, per_component or None)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, 0.001))
        finally:
            self.in_flight -= 1
        if url not in self.files:
            return httpx.Response(404, request=request)
        return httpx.Response(200, content=self.files[url], request=request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def archive() -> FakeArchive:
    return FakeArchive()
