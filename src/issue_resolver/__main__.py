"""Entry point for the issue resolver command line.

This module provides the ``resolve-issues`` program. It handles:
- Configuration loading and credential checks
- Logging setup with secret sanitization
- The scan, resolve and report commands
- Starting the scheduled service (serve)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import structlog
from rich.console import Console
from rich.markup import escape

from issue_resolver._version import __version__

log = structlog.get_logger()

console = Console()
error_console = Console(stderr=True)


def setup_logging(debug: bool = False, log_format: str = "console") -> None:
    """Configure structured logging with secret sanitization.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
    """
    from issue_resolver.utils.logging import LogLevel, configure_logging

    configure_logging(level=LogLevel.DEBUG if debug else LogLevel.WARNING, log_format=log_format)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="resolve-issues",
        description="Automated issue resolution for GitHub organizations",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to an optional YAML configuration file",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser(
        "scan", help="Scan all organizations and report issues that would be resolved"
    )
    scan.add_argument("-o", "--org", help="Scan specific organization")
    scan.add_argument("--json", action="store_true", help="Output as JSON")

    resolve = subparsers.add_parser(
        "resolve", help="Resolve issues (close stale, duplicate, bot-generated)"
    )
    resolve.add_argument("-o", "--org", help="Resolve in specific organization")
    resolve.add_argument(
        "--dry-run", action="store_true", help="Preview without making changes"
    )

    report = subparsers.add_parser("report", help="Generate a detailed report of all open issues")
    report.add_argument("-o", "--org", help="Report for specific organization")
    report.add_argument(
        "--format",
        choices=["table", "json", "markdown"],
        default="table",
        help="Output format (default: table)",
    )

    serve = subparsers.add_parser(
        "serve", help="Run the scheduled service with its HTTP trigger and health check"
    )
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")

    return parser


async def run_command(args: argparse.Namespace) -> int:
    """Run a scan, resolve or report command.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    from issue_resolver.config.loader import load_config, require_organizations, require_token
    from issue_resolver.core.orchestrator import run_scan
    from issue_resolver.core.report import (
        print_report,
        print_resolve_summary,
        print_scan_summary,
        render_json,
    )

    config = load_config(args.config)
    require_token(config)
    orgs = require_organizations([args.org] if args.org else config.organizations)

    if args.command == "scan":
        if not args.json:
            console.print(f"[blue]Scanning {len(orgs)} organization(s)...[/blue]")
        report = await run_scan(config, orgs, dry_run=True)
        if args.json:
            console.out(render_json(report), highlight=False)
        else:
            print_scan_summary(report, console)

    elif args.command == "resolve":
        prefix = escape("[DRY RUN] ") if args.dry_run else ""
        console.print(f"[blue]{prefix}Resolving issues in {len(orgs)} organization(s)...[/blue]")
        report = await run_scan(config, orgs, dry_run=args.dry_run)
        print_resolve_summary(report, console)

    elif args.command == "report":
        error_console.print(f"[blue]Generating report for {len(orgs)} organization(s)...[/blue]")
        report = await run_scan(config, orgs, dry_run=True)
        print_report(report, args.format, console)

    return 0


def run_service(args: argparse.Namespace) -> int:
    """Start the scheduled service under uvicorn."""
    import uvicorn

    from issue_resolver.config.loader import load_config, require_organizations, require_token
    from issue_resolver.service.app import create_app
    from issue_resolver.utils.logging import configure_logging

    config = load_config(args.config)
    require_token(config)
    require_organizations(config.organizations)

    configure_logging(
        level="DEBUG" if args.debug else config.logging.level,
        log_format=config.logging.format,
        file_path=config.logging.file.path if config.logging.file.enabled else None,
        file_enabled=config.logging.file.enabled,
    )

    log.info(
        "starting_issue_resolver_service",
        version=__version__,
        organizations=config.organizations,
        host=args.host,
        port=args.port,
    )
    uvicorn.run(create_app(config), host=args.host, port=args.port, log_config=None)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    from issue_resolver.utils.async_helpers import ConfigurationError

    args = build_parser().parse_args(argv)

    setup_logging(debug=args.debug, log_format=args.log_format)

    try:
        if args.command == "serve":
            return run_service(args)
        return asyncio.run(run_command(args))
    except ConfigurationError as e:
        error_console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        return 1
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 130


if __name__ == "__main__":
    sys.exit(main())
