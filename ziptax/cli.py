"""
Command-line interface for the ZIP tax rate engine.

Provides subcommands for single and batch ZIP lookups, browsing state
profiles, and validating the reference tables.
"""

from __future__ import annotations

import argparse
import csv
import json
import sys
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ziptax.config import Settings, load_settings
from ziptax.exceptions import InvalidZipError, ZipTaxError
from ziptax.logging_config import configure_logging
from ziptax.overlays import CATEGORY_RESULT_KEYS
from ziptax.rates import RateTables
from ziptax.report_generator import ReportGenerator
from ziptax.resolver import RateResolver, TaxRateResult, normalize_zip

console = Console()


def _build_resolver(settings: Settings) -> RateResolver:
    try:
        return RateResolver(settings=settings)
    except ZipTaxError as e:
        console.print(f"[red]Could not load rate tables: {e}[/red]")
        sys.exit(1)


def _load_zip_csv(path: str) -> tuple[list[str], list[str]]:
    """
    Read ZIPs from the ``zip`` column of a CSV file.

    Returns (valid zips, error messages for rows that were skipped).
    """
    csv_path = Path(path)
    if not csv_path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        sys.exit(1)

    zips: list[str] = []
    errors: list[str] = []
    with open(csv_path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames or "zip" not in reader.fieldnames:
            console.print(f"[red]{path} needs a 'zip' column[/red]")
            sys.exit(1)
        for i, row in enumerate(reader):
            try:
                zips.append(normalize_zip(row.get("zip") or ""))
            except InvalidZipError as e:
                errors.append(f"Row {i + 2}: {e}")
    return zips, errors


def _pct(rate) -> str:
    return f"{float(rate):.2f}%"


def _result_panel(result: TaxRateResult) -> Panel:
    lines = [
        f"[bold]ZIP:[/bold] {result.zip_code}",
        f"[bold]State:[/bold] {result.state}"
        + (f" ({result.state_code})" if result.state_code else ""),
    ]
    if result.city:
        lines.append(f"[bold]City:[/bold] {result.city}")
    if result.county:
        lines.append(f"[bold]County:[/bold] {result.county}")
    lines.append(f"[bold]State Rate:[/bold] {float(result.state_tax_rate):g}%")
    lines.append(f"[bold]Local Rate:[/bold] {_pct(result.local_tax_rate)}")
    if result.municipality_tax is not None:
        lines.append(f"  Municipality: {_pct(result.municipality_tax)}")
        lines.append(f"  Transit District: {_pct(result.transit_tax)}")
        lines.append(f"  County: {_pct(result.county_tax)}")
    lines.append(f"[bold]Combined Rate:[/bold] {_pct(result.combined_rate)}")
    lines.append(f"[bold]Source:[/bold] {result.source.value}")

    color = "green" if not result.is_estimated else (
        "yellow" if result.is_recognized else "red"
    )
    lines.append(f"[{color}]{result.disclaimer.value}[/{color}]")

    return Panel("\n".join(lines), title="Tax Rate Lookup", border_style="blue")


# -----------------------------------------------------------------------
# Subcommand: lookup
# -----------------------------------------------------------------------


def cmd_lookup(args: argparse.Namespace) -> None:
    """Resolve the rate for one ZIP code."""
    try:
        zip_code = normalize_zip(args.zip)
    except InvalidZipError as e:
        if args.json:
            print(json.dumps({"success": False, "error": str(e)}))
        else:
            console.print(f"[red]{e}[/red]")
        sys.exit(1)

    result = _build_resolver(args.settings).resolve(zip_code)

    if args.json:
        print(json.dumps({"success": True, **result.to_dict()}, indent=2))
        return

    console.print(_result_panel(result))

    if result.category_rates:
        table = Table(title="Category Rates", box=box.SIMPLE)
        table.add_column("Category")
        table.add_column("Rate", justify="right")
        for category, rate in result.category_rates.items():
            table.add_row(CATEGORY_RESULT_KEYS[category], _pct(rate))
        console.print(table)


# -----------------------------------------------------------------------
# Subcommand: batch
# -----------------------------------------------------------------------


def cmd_batch(args: argparse.Namespace) -> None:
    """Resolve every ZIP in a CSV file."""
    zips, errors = _load_zip_csv(args.file)
    for e in errors:
        console.print(f"[yellow]Skipping {e}[/yellow]")

    results = _build_resolver(args.settings).resolve_many(zips)

    table = Table(
        title="ZIP Rate Lookup Results",
        box=box.ROUNDED,
        show_lines=True,
    )
    table.add_column("ZIP", style="dim")
    table.add_column("State")
    table.add_column("City")
    table.add_column("State Rate", justify="right")
    table.add_column("Local Rate", justify="right")
    table.add_column("Combined", justify="right", style="bold")
    table.add_column("Estimated", justify="center")

    for r in results:
        table.add_row(
            r.zip_code,
            r.state_code or "??",
            r.city or "-",
            f"{float(r.state_tax_rate):g}%",
            _pct(r.local_tax_rate),
            _pct(r.combined_rate),
            "Y" if r.is_estimated else "",
        )
    console.print(table)

    rg = ReportGenerator(args.output_dir or "reports")
    report = rg.lookup_report(results, errors)
    console.print(rg.format_text(report))

    if args.export_json:
        rg.to_json(report, args.export_json)
        console.print(f"[green]JSON exported to {rg.output_dir / args.export_json}[/green]")
    if args.export_csv:
        rg.to_csv(results, args.export_csv)
        console.print(f"[green]CSV exported to {rg.output_dir / args.export_csv}[/green]")


# -----------------------------------------------------------------------
# Subcommand: states
# -----------------------------------------------------------------------


def cmd_states(args: argparse.Namespace) -> None:
    """Display state tax profiles."""
    resolver = _build_resolver(args.settings)
    tables = resolver.tables

    if args.state:
        profile = tables.get_profile(args.state)
        if not profile:
            console.print(f"[red]Unknown state: {args.state}[/red]")
            sys.exit(1)

        default = profile.default_local_rate
        chain = ", ".join(type(s).__name__ for s in resolver.chain_for(profile.state_code))
        prefixes = resolver.index.prefixes_for(profile.state_code)
        console.print(
            Panel(
                f"[bold]State:[/bold] {profile.name} ({profile.state_code})\n"
                f"[bold]Base Rate:[/bold] {float(profile.base_rate):g}%\n"
                f"[bold]Local Taxes:[/bold] {'Yes' if profile.has_local_tax else 'No'}\n"
                f"[bold]Default Local Rate:[/bold] "
                f"{_pct(default) if default is not None else 'global default'}\n"
                f"[bold]Category Rates:[/bold] "
                f"{'Yes' if tables.has_category_data(profile.state_code) else 'No'}\n"
                f"[bold]ZIP Prefixes:[/bold] {len(prefixes)}\n"
                f"[bold]Local Strategy Chain:[/bold] {chain}",
                title=f"{profile.name} Tax Profile",
                border_style="cyan",
            )
        )

        overlays = tables.overlays_for(profile.state_code)
        if overlays:
            ot = Table(title="Category Overlays", box=box.SIMPLE)
            ot.add_column("Category")
            ot.add_column("Layer")
            ot.add_column("Jurisdiction")
            ot.add_column("Rate", justify="right")
            ot.add_column("Per Gallon", justify="right")
            for o in overlays:
                ot.add_row(
                    CATEGORY_RESULT_KEYS[o.category],
                    o.layer.value,
                    o.jurisdiction or "-",
                    _pct(o.rate),
                    f"${o.rate_per_gallon}" if o.rate_per_gallon is not None else "-",
                )
            console.print(ot)
        return

    table = Table(title="US Sales Tax Profiles - All States", box=box.ROUNDED)
    table.add_column("State", style="bold")
    table.add_column("Name")
    table.add_column("Base Rate", justify="right")
    table.add_column("Local", justify="center")
    table.add_column("Default Local", justify="right")
    table.add_column("Categories", justify="center")

    no_tax = set(tables.no_sales_tax_states())
    for profile in tables.all_profiles():
        table.add_row(
            profile.state_code,
            profile.name,
            "None" if profile.state_code in no_tax else f"{float(profile.base_rate):g}%",
            "Y" if profile.has_local_tax else "",
            _pct(profile.default_local_rate) if profile.default_local_rate is not None else "-",
            "Y" if tables.has_category_data(profile.state_code) else "",
            style="dim" if profile.state_code in no_tax else "",
        )
    console.print(table)


# -----------------------------------------------------------------------
# Subcommand: check
# -----------------------------------------------------------------------


def cmd_check(args: argparse.Namespace) -> None:
    """Load and validate every reference table."""
    data_dir = Path(args.data_dir) if args.data_dir else args.settings.data_dir
    try:
        tables = RateTables(data_dir)
    except ZipTaxError as e:
        console.print(Panel(str(e), title="Rate tables invalid", border_style="red"))
        sys.exit(1)

    table = Table(title=f"Rate tables in {data_dir}", box=box.SIMPLE)
    table.add_column("Table")
    table.add_column("Rows", justify="right")
    for name, count in tables.summary().items():
        table.add_row(name.replace("_", " "), str(count))
    console.print(table)

    for w in tables.warnings:
        console.print(f"[yellow]Warning: {w}[/yellow]")
    console.print("[green]Rate tables OK.[/green]")


# -----------------------------------------------------------------------
# Argument parser
# -----------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ziptax",
        description="ZIP Tax Rate Engine - layered state, local and category sales tax rates by ZIP code",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # lookup
    lookup_p = subparsers.add_parser("lookup", help="Look up the rate for a ZIP code")
    lookup_p.add_argument("zip", help="ZIP code (ZIP+4 accepted)")
    lookup_p.add_argument("--json", action="store_true", help="Print the JSON response body")
    lookup_p.set_defaults(func=cmd_lookup)

    # batch
    batch_p = subparsers.add_parser("batch", help="Look up every ZIP in a CSV file")
    batch_p.add_argument("--file", "-f", required=True, help="CSV file with a 'zip' column")
    batch_p.add_argument("--export-json", help="Export the report to a JSON file")
    batch_p.add_argument("--export-csv", help="Export the results to a CSV file")
    batch_p.add_argument("--output-dir", help="Output directory for exports")
    batch_p.set_defaults(func=cmd_batch)

    # states
    states_p = subparsers.add_parser("states", help="View state tax profiles")
    states_p.add_argument("--state", "-s", help="State code to look up")
    states_p.set_defaults(func=cmd_states)

    # check
    check_p = subparsers.add_parser("check", help="Validate the reference tables")
    check_p.add_argument("--data-dir", help="Directory with the CSV tables")
    check_p.set_defaults(func=cmd_check)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    try:
        args.settings = load_settings()
    except ValueError as e:
        if getattr(args, "json", False):
            print(json.dumps({"success": False, "error": str(e)}))
        else:
            console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(1)

    configure_logging(args.settings.log_level)
    args.func(args)
