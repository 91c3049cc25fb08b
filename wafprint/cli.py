#!/usr/bin/env python3
"""
wafprint CLI Interface
Command-line interface for WAF fingerprinting
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from wafprint import ETHICAL_NOTICE
from wafprint.core.catalog import RuleCatalog
from wafprint.core.detector import DetectionOptions, WAFDetector
from wafprint.core.exceptions import WAFPrintError
from wafprint.core.http_client import DEFAULT_TIMEOUT_MS
from wafprint.data.rules import DEFAULT_RULES_PATH
from wafprint.utils.logger import setup_logger
from wafprint.utils.report import ReportGenerator, build_result_record, summary_line

app = typer.Typer(
    name="wafprint",
    help="Identify the Web Application Firewall protecting a site",
    no_args_is_help=True
)

console = Console()


def load_catalog(rules: Optional[str]) -> RuleCatalog:
    try:
        return RuleCatalog.from_file(rules or DEFAULT_RULES_PATH)
    except WAFPrintError as e:
        console.print(f"[red]ERROR: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.command()
def detect(
    target: str = typer.Argument(..., help="Domain, IP or URL (https:// is assumed when no scheme is given)"),
    find_all: bool = typer.Option(
        False, "--find-all", "-a",
        help="Find all WAFs, do not stop on first match"
    ),
    no_attack: bool = typer.Option(
        False, "--no-attack",
        help="Do not make attack requests"
    ),
    timeout: int = typer.Option(
        DEFAULT_TIMEOUT_MS, "--timeout",
        help="Request timeout in milliseconds"
    ),
    rules: Optional[str] = typer.Option(
        None, "--rules", "-r",
        help="Path to a JSON ruleset (default: bundled rules)"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o",
        help="Write the result record to this JSON file"
    ),
    log_file: Optional[str] = typer.Option(
        None, "--log-file",
        help="Write detailed logs to this file"
    ),
    verbose: int = typer.Option(
        1, "--verbose", "-v",
        help="Verbosity level: 0=minimal, 1=standard, 2=debug"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Do not show the ethical notice"
    )
):
    """Detect the WAF in front of TARGET."""

    if not quiet:
        console.print(Panel(ETHICAL_NOTICE.strip(), title="ETHICAL NOTICE", border_style="red"))

    logger = setup_logger(verbose, log_file)
    catalog = load_catalog(rules)
    detector = WAFDetector(catalog=catalog, logger=logger)
    options = DetectionOptions.from_mapping({
        "findAll": find_all,
        "checkAttacks": not no_attack,
        "timeout": timeout,
    })

    try:
        report = asyncio.run(detector.identify(target, options))
    except KeyboardInterrupt:
        console.print("[yellow]Detection interrupted by user[/yellow]")
        raise typer.Exit(1)
    except WAFPrintError as e:
        console.print(f"[red]ERROR: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print()
    if report.found:
        console.print("[+] WAF Detected!", style="bold green", markup=False)
        for name in report.detected:
            entry = catalog.get(name)
            vendor = f" ({entry.vendor})" if entry and entry.vendor else ""
            console.print(f"    {name}{vendor}", markup=False)
        console.print()
        console.print(f"[+] {summary_line(report)}", style="green", markup=False)
    else:
        console.print(f"[-] {summary_line(report)}", style="yellow", markup=False)

    if output:
        path = ReportGenerator().generate_json_report([build_result_record(report, catalog)], output)
        console.print(f"Results saved to: {path}", markup=False)


@app.command("list-wafs")
def list_wafs(
    rules: Optional[str] = typer.Option(
        None, "--rules", "-r",
        help="Path to a JSON ruleset (default: bundled rules)"
    )
):
    """List the WAFs the ruleset can detect, in detection order."""
    catalog = load_catalog(rules)
    console.print(ReportGenerator.catalog_table(catalog), markup=False, highlight=False, soft_wrap=True)
    console.print(f"\n{len(catalog)} WAF signatures", markup=False)


@app.command("check-rules")
def check_rules(
    rules: Optional[str] = typer.Option(
        None, "--rules", "-r",
        help="Path to a JSON ruleset (default: bundled rules)"
    )
):
    """Report patterns that fall back to literal matching and header-name patterns."""
    catalog = load_catalog(rules)

    fallbacks = catalog.literal_patterns()
    if fallbacks:
        console.print(f"[yellow]{len(fallbacks)} pattern(s) are not valid regular expressions "
                      f"and are matched as literal text:[/yellow]")
        console.print(ReportGenerator.fallback_table(catalog), markup=False, highlight=False, soft_wrap=True)
    else:
        console.print("[green]All patterns compile as regular expressions[/green]")

    header_patterns = catalog.header_name_patterns()
    if header_patterns:
        console.print(f"\n{len(header_patterns)} header rule(s) match header names by pattern:",
                      markup=False)
        console.print(ReportGenerator.header_pattern_table(catalog), markup=False, highlight=False, soft_wrap=True)


@app.command()
def version():
    """Show version information."""
    from wafprint import __version__, __author__
    console.print(f"wafprint v{__version__}")
    console.print(f"By {__author__}")


if __name__ == "__main__":
    app()
