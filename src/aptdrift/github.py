"""Open pull request counts from the GitHub search API, shown at the top of the report."""

import logging
from pathlib import Path
from urllib.parse import quote_plus, urljoin

import httpx
from pydantic import BaseModel

from aptdrift.config import GITHUB_PR_FILTER_BASE, GITHUB_PR_FILTERS
from aptdrift.constants import GITHUB_API_URL
from aptdrift.errors import ConfigError, TransportError

logger = logging.getLogger(__name__)


class PullRequestCount(BaseModel):
    name: str
    query: str
    total: int

    @property
    def url(self) -> str:
        """Link to the same search in the GitHub web UI."""
        return f"https://github.com/pulls?q={quote_plus(self.query)}"


def read_token(path: Path) -> str:
    """Read a GitHub personal access token from ``path``.

    Raises:
        ConfigError: if the file is missing or empty
    """
    try:
        token = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError as e:
        raise ConfigError(f"Put your GitHub token in {path}") from e
    if not token:
        raise ConfigError(f"GitHub token file {path} is empty")
    return token


async def search_pull_requests(
    client: httpx.AsyncClient,
    token: str,
    filters: list[tuple[str, str]] = GITHUB_PR_FILTERS,
    api_url: str = GITHUB_API_URL,
) -> list[PullRequestCount]:
    """Count open pull requests for each named search filter.

    Args:
        client: HTTP client to issue the searches with
        token: GitHub token sent as a bearer credential
        filters: ``(name, query)`` pairs, each query is appended to the base filter
        api_url: GitHub REST API root

    Returns:
        One count per filter, in filter order
    """
    search_url = urljoin(api_url, "search/issues")
    headers = {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": "2022-11-28",
    }

    counts = []
    for name, query in filters:
        full_query = f"{GITHUB_PR_FILTER_BASE} {query}"
        try:
            response = await client.get(search_url, params={"q": full_query, "per_page": 1}, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise TransportError(search_url, f"GitHub search failed with HTTP {status}", status_code=status) from e
        except httpx.HTTPError as e:
            raise TransportError(search_url, f"GitHub search failed ({e.__class__.__name__}: {e})") from e

        total = int(response.json().get("total_count", 0))
        logger.info(f"{name}: {total}")
        counts.append(PullRequestCount(name=name, query=full_query, total=total))
    return counts
