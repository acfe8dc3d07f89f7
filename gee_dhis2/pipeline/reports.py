"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from gee_dhis2.common.fs import read_json, write_json


def write_run_summary(data_dir: Path, run_id: str, run_date: str, rule_ids: list[str]) -> Path:
    rule_reports = {}
    totals = {
        "data_values": 0,
        "skipped_org_units": 0,
    }
    warning_count = 0
    error_count = 0

    for rule_id in rule_ids:
        report_path = data_dir / "out" / "reports" / f"{rule_id}_report.json"
        if not report_path.exists():
            rule_reports[rule_id] = {"status": "missing_report"}
            error_count += 1
            continue

        report = read_json(report_path)
        if report.get("run_id") != run_id:
            rule_reports[rule_id] = {"status": "stale_report", "run_id": report.get("run_id")}
            error_count += 1
            continue

        rule_reports[rule_id] = {
            "counts": report.get("counts", {}),
            "warnings": report.get("warnings", []),
            "errors": report.get("errors", []),
        }

        counts = report.get("counts", {})
        totals["data_values"] += int(counts.get("data_values", 0))
        totals["skipped_org_units"] += len(report.get("skipped_org_units", []))

        warning_count += len(report.get("warnings", []))
        error_count += len(report.get("errors", []))

    status = "success"
    if error_count > 0:
        status = "error"
    elif warning_count > 0:
        status = "partial"

    summary_path = data_dir / "out" / "reports" / "run_summary.json"
    payload = {
        "run_id": run_id,
        "run_date": run_date,
        "status": status,
        "rules": rule_ids,
        "totals": totals,
        "warning_count": warning_count,
        "error_count": error_count,
        "rule_reports": rule_reports,
    }
    write_json(summary_path, payload)
    return summary_path
