"""Static HTML report of the version matrix."""

import logging
from datetime import datetime
from html import escape
from pathlib import Path
from urllib.parse import quote

from aptdrift.aggregate import VersionMatrix, VersionSlot
from aptdrift.checker import count_findings
from aptdrift.config import RepoKind
from aptdrift.github import PullRequestCount

logger = logging.getLogger(__name__)

LAUNCHPAD_PPA_SEARCH = (
    "https://launchpad.net/~system76-dev/+archive/ubuntu/{ppa}/+packages"
    "?field.name_filter={package}&field.status_filter=published&field.series_filter={codename}"
)
LAUNCHPAD_SOURCE = "https://launchpad.net/ubuntu/+source/{package}/{version}"
PPA_NAMES = {
    RepoKind.STABLE: "stable",
    RepoKind.PRE_STABLE: "pre-stable",
}

HTML_HEAD = """<!DOCTYPE html>
<html lang='en'>
<head>
<meta charset='utf-8'>
<meta name='viewport' content='width=device-width'>
<title>aptdrift</title>
<script src='https://code.jquery.com/jquery-4.0.0.min.js' crossorigin='anonymous'></script>
<link rel='stylesheet' type='text/css' href='https://cdn.datatables.net/2.3.7/css/dataTables.dataTables.min.css'>
<script type='text/javascript' src='https://cdn.datatables.net/2.3.7/js/dataTables.min.js'></script>
<style>
td.error {
    background-color: #800000
}
</style>
<script type='text/javascript'>
function onload(){
    new DataTable('#table', {
        order: [
            [0, 'desc'],
            [1, 'asc'],
            [2, 'asc']
        ],
        paging: false
    });
}
</script>
</head>
<body onload='onload()'>"""

HTML_TAIL = """</body>
</html>"""


def slot_link(package: str, slot: VersionSlot) -> str | None:
    """Where a version in the report should link to, if anywhere."""
    if ppa := PPA_NAMES.get(slot.kind):
        return LAUNCHPAD_PPA_SEARCH.format(
            ppa=ppa,
            package=quote(package, safe=""),
            codename=quote(slot.codename.value, safe=""),
        )
    if slot.kind.is_upstream:
        return LAUNCHPAD_SOURCE.format(package=quote(package, safe=""), version=quote(slot.version, safe=""))
    if commit := slot.commit:
        return commit.url
    return None


def format_version(version: str) -> str:
    """Escape a version, allowing the browser to wrap it after punctuation."""
    text = escape(version)
    for char in "~-+":
        text = text.replace(char, f"{char}&#8203;")
    return text


def render_cell(package: str, slot: VersionSlot | None) -> str:
    if slot is None:
        return "<td>None</td>"

    lines = ["<td class='error'>" if slot.diagnostics else "<td>"]
    if url := slot_link(package, slot):
        lines.append(f"<a href='{escape(url)}'>{format_version(slot.version)}</a>")
    else:
        lines.append(escape(slot.version))
    lines.extend(f"<br/>{escape(diagnostic)}" for diagnostic in slot.diagnostics)
    lines.append("</td>")
    return "\n".join(lines)


def render_pull_requests(pr_counts: list[PullRequestCount]) -> list[str]:
    if not pr_counts:
        return []
    lines = ["<table width='100%'><tr>"]
    for pr in pr_counts:
        lines.append(f"<td><a href='{escape(pr.url)}'>{escape(pr.name)}: {pr.total}</a></td>")
    lines.append("</tr></table>")
    return lines


def render_report(
    matrix: VersionMatrix,
    pr_counts: list[PullRequestCount] | None = None,
    generated_at: datetime | None = None,
) -> str:
    """Render the whole report page.

    Args:
        matrix: Checked version matrix, rendered in its iteration order
        pr_counts: Pull request summary for the header, omitted if empty
        generated_at: Timestamp shown in the header, defaults to now

    Returns:
        The HTML document
    """
    if generated_at is None:
        generated_at = datetime.now().astimezone()

    lines = [HTML_HEAD]
    lines.append(f"<h4>Generated by aptdrift at {escape(generated_at.strftime('%Y-%m-%d %H:%M:%S %Z'))}</h4>")
    lines.extend(render_pull_requests(pr_counts or []))

    lines.append("<table id='table' class='display compact' style='overflow-wrap: anywhere'>")
    lines.append("<thead>")
    lines.append("<tr>")
    lines.append(f"<th>Errors ({count_findings(matrix)})</th>")
    lines.append("<th>Source</th>")
    lines.append("<th>Codename</th>")
    for kind in RepoKind:
        lines.append(f"<th><a href='{escape(kind.url)}'>{escape(kind.label)}</a></th>")
    lines.append("</tr>")
    lines.append("</thead>")

    lines.append("<tbody>")
    for (package, codename), info in matrix.items():
        errors = info.diagnostic_count
        lines.append("<tr>")
        lines.append(f"<td class='error'>{errors}</td>" if errors else f"<td>{errors}</td>")
        lines.append(f"<td>{escape(package)}</td>")
        lines.append(f"<td>{escape(codename.value)}</td>")
        for _kind, slot in info.iter_slots():
            lines.append(render_cell(package, slot))
        lines.append("</tr>")
    lines.append("</tbody>")
    lines.append("</table>")

    lines.append(HTML_TAIL)
    return "\n".join(lines) + "\n"


def write_report(
    path: Path,
    matrix: VersionMatrix,
    pr_counts: list[PullRequestCount] | None = None,
    generated_at: datetime | None = None,
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_report(matrix, pr_counts, generated_at), encoding="utf-8")
    logger.info(f"Wrote report to {path}")
    return path
