"""
Lookup report generator.

Produces:
- Batch lookup summaries (exact vs. estimated vs. unrecognized)
- State-by-state rate ranges
- CSV and JSON export of individual results
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any, Optional

from ziptax.overlays import CATEGORY_RESULT_KEYS
from ziptax.resolver import Disclaimer, TaxRateResult


class _DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and date objects."""

    def default(self, o: Any) -> Any:
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, date):
            return o.isoformat()
        return super().default(o)


_CSV_FIELDS = [
    "zip",
    "state_code",
    "state",
    "city",
    "county",
    "state_tax_rate",
    "local_tax_rate",
    "combined_rate",
    "source",
    "estimated",
    *CATEGORY_RESULT_KEYS.values(),
    "disclaimer",
]


class ReportGenerator:
    """
    Builds lookup reports with export capabilities.

    Reports are plain dicts that can be rendered to console-friendly
    text or written out as JSON; individual results export to CSV.
    """

    def __init__(self, output_dir: Optional[str] = None) -> None:
        self.output_dir = Path(output_dir) if output_dir else Path("reports")

    def lookup_report(
        self,
        results: list[TaxRateResult],
        errors: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        """Summarize a batch of lookups."""
        recognized = [r for r in results if r.is_recognized]
        exact = [r for r in results if r.disclaimer is Disclaimer.DATA_BASED]

        by_state: dict[str, list[TaxRateResult]] = {}
        for r in recognized:
            by_state.setdefault(r.state_code, []).append(r)

        state_details: list[dict[str, Any]] = []
        for state_code in sorted(by_state):
            rates = [r.combined_rate for r in by_state[state_code]]
            state_details.append(
                {
                    "state": state_code,
                    "lookup_count": len(rates),
                    "min_combined_rate": min(rates),
                    "max_combined_rate": max(rates),
                    "exact_matches": sum(
                        1 for r in by_state[state_code] if not r.is_estimated
                    ),
                }
            )

        average = (
            sum((r.combined_rate for r in recognized), Decimal("0")) / len(recognized)
            if recognized
            else Decimal("0")
        )

        return {
            "report_type": "zip_rate_lookup",
            "generated_date": date.today().isoformat(),
            "summary": {
                "total_lookups": len(results),
                "recognized": len(recognized),
                "exact_matches": len(exact),
                "estimated": len(recognized) - len(exact),
                "unrecognized": len(results) - len(recognized),
                "average_combined_rate": average.quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                ),
            },
            "state_breakdown": state_details,
            "results": [r.to_dict() for r in results],
            "errors": list(errors or []),
        }

    # ------------------------------------------------------------------
    # Export methods
    # ------------------------------------------------------------------

    def _write(self, filename: str, content: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_text(content, encoding="utf-8")
        return path

    def to_json(
        self,
        report: dict[str, Any],
        filename: Optional[str] = None,
    ) -> str:
        """Export a report to JSON. Returns the JSON string."""
        json_str = json.dumps(report, indent=2, cls=_DecimalEncoder)

        if filename:
            self._write(filename, json_str)

        return json_str

    def to_csv(
        self,
        results: list[TaxRateResult],
        filename: Optional[str] = None,
    ) -> str:
        """Export one row per result. Returns the CSV string."""
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=_CSV_FIELDS)
        writer.writeheader()

        for r in results:
            row: dict[str, Any] = {
                "zip": r.zip_code,
                "state_code": r.state_code,
                "state": r.state,
                "city": r.city or "",
                "county": r.county or "",
                "state_tax_rate": float(r.state_tax_rate),
                "local_tax_rate": float(r.local_tax_rate),
                "combined_rate": float(r.combined_rate),
                "source": r.source.value,
                "estimated": r.is_estimated,
                "disclaimer": r.disclaimer.value,
            }
            for category, key in CATEGORY_RESULT_KEYS.items():
                rate = r.category_rate(category)
                row[key] = float(rate) if rate is not None else ""
            writer.writerow(row)

        csv_str = output.getvalue()

        if filename:
            self._write(filename, csv_str)

        return csv_str

    # ------------------------------------------------------------------
    # Console-formatted text output
    # ------------------------------------------------------------------

    def format_text(self, report: dict[str, Any]) -> str:
        """Format a report as human-readable text for console output."""
        lines: list[str] = []
        report_type = report.get("report_type", "report").replace("_", " ").title()
        lines.append(f"{'=' * 60}")
        lines.append(f"  {report_type}")
        lines.append(f"  Generated: {report.get('generated_date', '')}")
        lines.append(f"{'=' * 60}")
        lines.append("")

        summary = report.get("summary", {})
        if summary:
            lines.append("SUMMARY")
            lines.append("-" * 40)
            for key, value in summary.items():
                label = key.replace("_", " ").title()
                if isinstance(value, (float, Decimal)):
                    lines.append(f"  {label}: {float(value):.2f}%")
                else:
                    lines.append(f"  {label}: {value}")
            lines.append("")

        state_data = report.get("state_breakdown", [])
        if state_data:
            lines.append("STATE BREAKDOWN")
            lines.append("-" * 40)
            for sd in state_data:
                low = float(sd["min_combined_rate"])
                high = float(sd["max_combined_rate"])
                span = f"{low:.2f}%" if low == high else f"{low:.2f}% - {high:.2f}%"
                lines.append(
                    f"  {sd['state']}: {span:>17} | "
                    f"{sd['lookup_count']} lookups | {sd['exact_matches']} exact"
                )
            lines.append("")

        errors = report.get("errors", [])
        if errors:
            lines.append("ERRORS")
            lines.append("-" * 40)
            for e in errors:
                lines.append(f"  * {e}")
            lines.append("")

        return "\n".join(lines)
