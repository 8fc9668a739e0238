"""Command line entry point: fetch, reconcile, and write the report."""

import asyncio
import logging
from argparse import ArgumentParser, Namespace
from pathlib import Path

from aptdrift.aggregate import aggregate
from aptdrift.checker import check
from aptdrift.constants import GITHUB_TOKEN_FILE, MAX_CONCURRENCY, OUTPUT_PATH
from aptdrift.errors import AptDriftError
from aptdrift.fetcher import new_http_client
from aptdrift.github import PullRequestCount, read_token, search_pull_requests
from aptdrift.orchestrator import collect_inventory
from aptdrift.report import write_report

logger = logging.getLogger(__name__)

parser = ArgumentParser(
    prog="aptdrift",
    description="Check that packages move through the APT promotion pipeline in version order.",
)
parser.add_argument(
    "-o",
    "--output",
    type=Path,
    default=OUTPUT_PATH,
    help=f"Report output path. (default: {OUTPUT_PATH})",
    dest="output",
)
parser.add_argument(
    "--token-file",
    type=Path,
    default=GITHUB_TOKEN_FILE,
    help=f"File containing a GitHub token for the pull request summary. (default: {GITHUB_TOKEN_FILE})",
    dest="token_file",
)
parser.add_argument(
    "--no-github",
    action="store_true",
    help="Skip the GitHub pull request summary.",
    dest="no_github",
)
parser.add_argument(
    "-j",
    "--max-concurrency",
    type=int,
    default=MAX_CONCURRENCY,
    help=f"Maximum number of concurrent HTTP requests, 0 for no limit. (default: {MAX_CONCURRENCY})",
    dest="max_concurrency",
)
parser.add_argument(
    "--packages",
    action="store_true",
    help="Also fetch binary Packages listings for every permitted architecture (slow).",
    dest="include_packages",
)
parser.add_argument(
    "-v",
    "--verbose",
    action="store_true",
    help="Enable debug logging.",
    dest="verbose",
)


async def run(args: Namespace) -> int:
    """Do one full reconciliation run, returning the number of findings."""
    pr_counts: list[PullRequestCount] = []
    async with new_http_client() as client:
        if not args.no_github:
            token = read_token(args.token_file)
            pr_counts = await search_pull_requests(client, token)

        inventory = await collect_inventory(
            client=client,
            max_concurrency=args.max_concurrency,
            include_packages=args.include_packages,
        )

    matrix = aggregate(inventory)
    findings = check(matrix)
    write_report(args.output, matrix, pr_counts)

    if findings > 0:
        logger.warning(f"finished with {findings} errors")
    else:
        logger.info("finished without errors")
    return findings


def main(argv: list[str] | None = None) -> int:
    args = parser.parse_args(argv)
    if args.max_concurrency < 0:
        parser.error("--max-concurrency must be 0 or greater")
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        asyncio.run(run(args))
    except AptDriftError as e:
        logger.exception(f"Run failed: {e}")
        return 1
    return 0
