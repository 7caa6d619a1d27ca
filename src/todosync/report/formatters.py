"""
Report formatting and export utilities.

This module provides functions to export sync reports in various
formats: JSON, CSV, and console/terminal output. All functions take the
dictionary form produced by ``SyncReport.to_dict``.
"""

import csv
import json
from typing import Any


def export_report_json(report: dict[str, Any], output_path: str) -> None:
    """
    Export report to JSON file

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w') as f:
        json.dump(report, f, indent=2)


def load_report_json(input_path: str) -> dict[str, Any]:
    """
    Load a report previously written by export_report_json

    Args:
        input_path: Path to JSON report

    Returns:
        Report dictionary
    """
    with open(input_path) as f:
        return json.load(f)


def export_report_csv(report: dict[str, Any], output_path: str) -> None:
    """
    Export report to CSV file, one row per executed operation

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    replica_names = {"A": report.get("side_a", "A"), "B": report.get("side_b", "B")}

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)

        writer.writerow([
            "Record ID",
            "Target",
            "Operation",
            "Outcome",
            "Attempts",
            "Error"
        ])

        for result in report.get("results", []):
            writer.writerow([
                result.get("record_id", ""),
                replica_names.get(result.get("target"), result.get("target", "")),
                result.get("kind", ""),
                result.get("outcome", ""),
                result.get("attempts", ""),
                result.get("error") or ""
            ])


def format_report_console(report: dict[str, Any]) -> str:
    """
    Format report for console output

    One line per category count, then one line per failed record.

    Args:
        report: Report dictionary

    Returns:
        Formatted string for console display
    """
    side_a = report.get("side_a", "A")
    side_b = report.get("side_b", "B")
    counts = report.get("counts", {})
    replica_names = {"A": side_a, "B": side_b}

    lines = []

    lines.append("=" * 80)
    lines.append("SYNC REPORT")
    lines.append("=" * 80)
    lines.append(f"Status: {report['status']}")
    lines.append(f"Mode: {report['mode']}")
    lines.append(f"Replicas: A={side_a}, B={side_b}")
    lines.append(f"Started: {report.get('started_at', '')}")
    lines.append(f"Finished: {report.get('finished_at') or '-'}")
    lines.append("")

    lines.append("COUNTS")
    lines.append("-" * 80)
    lines.append(f"Created on {side_a}: {counts.get('created_on_a', 0)}")
    lines.append(f"Created on {side_b}: {counts.get('created_on_b', 0)}")
    lines.append(f"Updated on {side_a}: {counts.get('updated_on_a', 0)}")
    lines.append(f"Updated on {side_b}: {counts.get('updated_on_b', 0)}")
    lines.append(f"Skipped (already in sync): {counts.get('skipped', 0)}")
    lines.append(f"Skipped (invalid timestamp): {counts.get('skipped_invalid', 0)}")
    lines.append(f"Failed: {counts.get('failed', 0)}")
    lines.append("")

    lines.append("SUMMARY")
    lines.append("-" * 80)
    lines.append(report.get("summary", ""))
    lines.append("")

    if report.get("failures"):
        lines.append("FAILURES")
        lines.append("-" * 80)
        for failure in report["failures"]:
            target = replica_names.get(failure["target"], failure["target"])
            lines.append(
                f"{failure['record_id']}: {failure['kind']} on {target} failed "
                f"after {failure.get('attempts', 1)} attempt(s): {failure.get('error')}"
            )
        lines.append("")

    if report.get("invalid_records"):
        lines.append("INVALID RECORDS")
        lines.append("-" * 80)
        for item in report["invalid_records"]:
            side = replica_names.get(item["side"], item["side"])
            lines.append(f"{item['record_id']} on {side}: {item['reason']}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)
