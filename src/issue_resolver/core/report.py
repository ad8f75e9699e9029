"""Rendering of scan reports for the command line.

Three formats are supported: a rich table, JSON, and markdown grouped by
organization. Issue titles come from users and are stripped of control
characters and escaped before they reach the terminal.
"""

from __future__ import annotations

import json
from enum import StrEnum
from itertools import groupby
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..models.decision import Action, Reason
from ..utils.security import sanitize_for_logging

if TYPE_CHECKING:
    from ..models.decision import ScanResult
    from ..models.stats import ScanReport


class ReportFormat(StrEnum):
    """Output formats of the report command."""

    TABLE = "table"
    JSON = "json"
    MARKDOWN = "markdown"


ACTION_STYLES = {
    Action.CLOSE: "bold red",
    Action.KEEP: "green",
    Action.SKIP: "yellow",
}


def _title(result: ScanResult, width: int) -> str:
    title = sanitize_for_logging(result.title)
    if len(title) > width:
        return f"{title[:width]}..."
    return title


def render_json(report: ScanReport, include_stats: bool = True) -> str:
    """Render a report as JSON.

    With ``include_stats`` the document is ``{"results": [...], "stats": {...}}``,
    otherwise just the list of results.
    """
    results = [r.to_dict() for r in report.results]
    if include_stats:
        return json.dumps({"results": results, "stats": report.stats.to_dict()}, indent=2)
    return json.dumps(results, indent=2)


def render_markdown(report: ScanReport) -> str:
    """Render a report as markdown, one table per organization."""
    lines = ["# Issue Resolution Report", ""]
    for org, results in groupby(report.results, key=lambda r: r.org):
        lines.append(f"## {org}")
        lines.append("")
        lines.append("| Repo | Issue | Title | Action |")
        lines.append("|------|-------|-------|--------|")
        for r in results:
            title = _title(r, 40).replace("|", "\\|")
            action = f"{r.decision.action.value} ({r.decision.reason.value})"
            lines.append(f"| {r.repo} | #{r.issue} | {title} | {action} |")
        lines.append("")
    return "\n".join(lines)


def build_table(report: ScanReport) -> Table:
    """Build a rich table with one row per examined issue."""
    table = Table(title="Issue Resolution Report")
    table.add_column("Issue", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Action", no_wrap=True)
    table.add_column("Reason")

    for r in report.results:
        style = ACTION_STYLES[r.decision.action]
        table.add_row(
            escape(f"{r.org}/{r.repo}#{r.issue}"),
            escape(_title(r, 50)),
            f"[{style}]{r.decision.action.value.upper()}[/{style}]",
            r.decision.reason.value,
        )
    return table


def print_report(report: ScanReport, fmt: ReportFormat | str, console: Console) -> None:
    """Print a report in the requested format."""
    fmt = ReportFormat(fmt)
    if fmt == ReportFormat.JSON:
        console.out(render_json(report, include_stats=False), highlight=False)
    elif fmt == ReportFormat.MARKDOWN:
        console.out(render_markdown(report), highlight=False)
    else:
        console.print(build_table(report))


def print_scan_summary(report: ScanReport, console: Console) -> None:
    """Print the summary of a dry-run scan and the issues that would be closed."""
    stats = report.stats
    to_close = report.by_action(Action.CLOSE)

    console.print("\n[green]=== Scan Results ===[/green]")
    console.print(f"Total scanned: {stats.scanned}")
    console.print(f"Would close: {len(to_close)}")
    _print_reason_counts(report, console)
    console.print(f"Protected (skipped): {stats.count(Reason.PROTECTED)}")
    console.print(f"Keeping open: {len(report.by_action(Action.KEEP))}")
    _print_run_notes(report, console)

    if to_close:
        console.print("\n[yellow]=== Issues to Close ===[/yellow]")
        for r in to_close:
            console.print(
                f"  {escape(r.org)}/{escape(r.repo)}#{r.issue}: "
                f"{escape(_title(r, 50))} ({r.decision.reason.value})"
            )

    console.print("\n[cyan]Run 'resolve-issues resolve' to close these issues.[/cyan]")


def print_resolve_summary(report: ScanReport, console: Console) -> None:
    """Print the summary of a resolve run."""
    stats = report.stats
    console.print("\n[green]=== Resolution Complete ===[/green]")
    console.print(f"Scanned: {stats.scanned}")
    if report.dry_run:
        console.print(f"Would close: {stats.would_close}")
    else:
        console.print(f"Closed: {stats.closed}")
        console.print(f"Already resolved: {stats.already_resolved}")
        console.print(f"Failed: {stats.failed}")
    _print_reason_counts(report, console)
    console.print(f"Protected (skipped): {stats.count(Reason.PROTECTED)}")
    _print_run_notes(report, console)


def _print_reason_counts(report: ScanReport, console: Console) -> None:
    stats = report.stats
    console.print(f"  - Stale: {stats.count(Reason.STALE)}")
    console.print(f"  - Bot/Automated: {stats.count(Reason.BOT_CLEANUP)}")
    console.print(f"  - Resolved: {stats.count(Reason.RESOLVED)}")
    console.print(f"  - Labeled for closure: {stats.count(Reason.LABELED)}")


def _print_run_notes(report: ScanReport, console: Console) -> None:
    stats = report.stats
    if stats.cap_reached:
        console.print("[yellow]Run cap reached; results are partial.[/yellow]")
    errors = stats.organization_errors + stats.repository_errors
    if errors:
        console.print(f"[red]Scopes skipped after errors: {errors} (see log)[/red]")
