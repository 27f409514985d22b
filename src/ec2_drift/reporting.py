"""
Drift report formatting.

Each formatter renders a DriftReport as a string. New formats are added by
registering a function in FORMATTERS.
"""

import json
from dataclasses import asdict, is_dataclass
from typing import Callable, Dict, List, Sequence

from .models import DriftReport, DriftResult
from .types import AttributeValue

DEFAULT_FORMAT = "text"


def format_value(value: AttributeValue) -> str:
    """Render an attribute value for human-readable output."""
    if is_dataclass(value) and not isinstance(value, type):
        value = asdict(value)
    if isinstance(value, (list, tuple)):
        return f"[{', '.join(str(v) for v in value)}]"
    if isinstance(value, dict):
        pairs = [f"{k}={value[k]}" for k in sorted(value)]
        return "{" + ", ".join(pairs) + "}"
    if isinstance(value, str):
        return value if value else "(empty)"
    return str(value)


def format_json(report: DriftReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def _columns(rows: Sequence[Sequence[str]], padding: int = 2) -> List[str]:
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]) - 1)]
    lines = []
    for row in rows:
        cells = [cell.ljust(width + padding) for cell, width in zip(row, widths)]
        lines.append("".join(cells) + row[-1])
    return lines


def format_table(report: DriftReport) -> str:
    rows = [
        ("INSTANCE ID", "DRIFT DETECTED", "DRIFTED ATTRIBUTES"),
        ("-----------", "--------------", "------------------"),
    ]
    for result in report.results:
        if result.error:
            attrs = f"ERROR: {result.error}"
        elif result.drifted_attributes:
            attrs = ", ".join(a.path for a in result.drifted_attributes)
        else:
            attrs = "-"
        rows.append((result.instance_id, "Yes" if result.has_drift else "No", attrs))

    lines = _columns(rows)
    lines.append("")
    lines.append(
        f"Summary: {report.drifted_instances}/{report.total_instances} instances with drift"
    )
    return "\n".join(lines)


def format_text(report: DriftReport) -> str:
    lines = ["EC2 Drift Detection Report", "=" * 26, ""]

    for result in report.results:
        lines.append(f"Instance: {result.instance_id}")
        if result.error:
            lines.extend([f"  Error: {result.error}", ""])
            continue
        if not result.has_drift:
            lines.extend(["  Status: No drift detected", ""])
            continue

        lines.append("  Status: DRIFT DETECTED")
        lines.append("  Drifted Attributes:")
        for attr in result.drifted_attributes:
            lines.append(f"    - {attr.path}:")
            lines.append(f"        AWS:       {format_value(attr.live_value)}")
            lines.append(f"        Terraform: {format_value(attr.state_value)}")
        lines.append("")

    lines.extend(
        [
            "Summary",
            "-------",
            f"Total instances checked: {report.total_instances}",
            f"Instances with drift:    {report.drifted_instances}",
            f"Instances without drift: {report.total_instances - report.drifted_instances}",
        ]
    )
    return "\n".join(lines)


def format_compact(report: DriftReport) -> str:
    if report.drifted_instances == 0:
        return f"OK: No drift detected in {report.total_instances} instances"
    return f"DRIFT: {report.drifted_instances}/{report.total_instances} instances have drift"


FORMATTERS: Dict[str, Callable[[DriftReport], str]] = {
    "json": format_json,
    "table": format_table,
    "text": format_text,
    "compact": format_compact,
}


def format_report(report: DriftReport, output_format: str = DEFAULT_FORMAT) -> str:
    """
    Render a report in the requested format.

    Args:
        report: Drift report to render
        output_format: One of FORMATTERS; unknown names fall back to text

    Returns:
        Rendered report
    """
    formatter = FORMATTERS.get(output_format, FORMATTERS[DEFAULT_FORMAT])
    return formatter(report)


def format_single(result: DriftResult, output_format: str = DEFAULT_FORMAT) -> str:
    """Render one instance result as a single-instance report."""
    report = DriftReport(
        total_instances=1,
        drifted_instances=1 if result.has_drift else 0,
        results=[result],
    )
    return format_report(report, output_format)
