"""Tests for the pull request summary."""

import httpx
import pytest

from aptdrift.errors import ConfigError, TransportError
from aptdrift.github import read_token, search_pull_requests


class TestReadToken:
    def test_reads_and_strips(self, tmp_path):
        path = tmp_path / ".github_token"
        path.write_text("ghp_secret\n")
        assert read_token(path) == "ghp_secret"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Put your GitHub token"):
            read_token(tmp_path / "nope")

    def test_empty_file(self, tmp_path):
        path = tmp_path / ".github_token"
        path.write_text("  \n")
        with pytest.raises(ConfigError, match="empty"):
            read_token(path)


class TestSearchPullRequests:
    @pytest.mark.asyncio
    async def test_counts_per_filter(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            total = 7 if "draft:true" in request.url.params["q"] else 2
            return httpx.Response(200, json={"total_count": total, "items": []})

        filters = [("Open", "draft:false"), ("Draft", "draft:true")]
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            counts = await search_pull_requests(client, "tok", filters, api_url="https://api.example/")

        assert [(c.name, c.total) for c in counts] == [("Open", 2), ("Draft", 7)]
        assert counts[1].query.endswith("draft:true")
        assert counts[1].query.startswith("is:pr is:open")
        assert seen[0].headers["Authorization"] == "Bearer tok"
        assert seen[0].url.path == "/search/issues"

    @pytest.mark.asyncio
    async def test_http_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "Bad credentials"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError) as excinfo:
                await search_pull_requests(client, "bad", [("Open", "draft:false")])
        assert excinfo.value.status_code == 401
