"""Import rules: a saved selection of org units, period and mappings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from gee_dhis2.common.config_loader import ConfigBundle
from gee_dhis2.common.fs import read_json, write_json
from gee_dhis2.common.models import DataValueSet, OrgUnit
from gee_dhis2.common.time_utils import utc_timestamp_iso
from gee_dhis2.pipeline.orchestrator import GeeDhis2
from gee_dhis2.pipeline.periods import interval_for_period

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportRule:
    id: str
    name: str
    org_units: tuple[OrgUnit, ...]
    period: dict
    mappings: tuple[str, ...]
    scale: float | None = None
    description: str | None = None

    @classmethod
    def from_config(cls, rule_id: str, cfg: dict) -> "ImportRule":
        org_units = tuple(
            OrgUnit.from_dict(entry) if isinstance(entry, dict) else OrgUnit(id=str(entry))
            for entry in cfg["org_units"]
        )
        scale = cfg.get("scale")
        return cls(
            id=rule_id,
            name=cfg["name"],
            org_units=org_units,
            period=dict(cfg["period"]),
            mappings=tuple(cfg["mappings"]),
            scale=float(scale) if scale is not None else None,
            description=cfg.get("description"),
        )


def _state_path(data_dir: Path) -> Path:
    return data_dir / "state" / "import_rules.json"


def load_rule_state(data_dir: Path) -> dict[str, dict]:
    path = _state_path(data_dir)
    if not path.exists():
        return {}
    return read_json(path).get("rules", {})


def _mark_executed(data_dir: Path, rule_id: str, run_id: str, run_date: str) -> None:
    rules = load_rule_state(data_dir)
    rules[rule_id] = {
        "last_executed": utc_timestamp_iso(),
        "run_id": run_id,
        "run_date": run_date,
    }
    write_json(_state_path(data_dir), {"rules": rules})


def run_import_rule(
    rule: ImportRule,
    bundle: ConfigBundle,
    geedhis2: GeeDhis2,
    data_dir: Path,
    run_id: str,
    run_date: str,
    *,
    dry_run: bool = False,
) -> dict:
    interval = interval_for_period(rule.period, run_date)
    combined = DataValueSet()
    mapping_counts: dict[str, int] = {}

    for mapping_id in rule.mappings:
        definition = bundle.mappings[mapping_id]
        dataset = bundle.datasets.get(definition.dataset)
        scale = rule.scale if rule.scale is not None else dataset.default_scale

        value_set = geedhis2.build_value_set(
            dataset.image_collection,
            definition.band_mapping,
            list(rule.org_units),
            interval,
            scale,
            attribute_option_combo=definition.attribute_option_combo,
        )
        mapping_counts[mapping_id] = len(value_set.data_values)
        combined.extend(value_set)
        logger.info(
            "mapping built",
            extra={
                "rule": rule.id,
                "mapping": mapping_id,
                "dataset": definition.dataset,
                "event": "MAPPING_BUILT",
                "status": "ok",
                "rows_out": len(value_set.data_values),
            },
        )

    value_set_path = data_dir / "out" / "value_sets" / f"{rule.id}.json"
    write_json(value_set_path, combined.to_dict())

    response = None
    if not dry_run:
        response = geedhis2.submit(combined)
        _mark_executed(data_dir, rule.id, run_id, run_date)

    report = {
        "rule": rule.id,
        "name": rule.name,
        "run_id": run_id,
        "run_date": run_date,
        "dry_run": dry_run,
        "interval": {
            "type": interval.type,
            "start": interval.start.isoformat(),
            "end": interval.end.isoformat(),
        },
        "counts": {
            "org_units": len({org_unit.id for org_unit in rule.org_units}),
            "data_values": len(combined.data_values),
            "by_mapping": mapping_counts,
        },
        "skipped_org_units": sorted(set(combined.skipped_org_units)),
        "warnings": sorted(set(combined.warnings)),
        "errors": [],
        "value_set_path": str(value_set_path),
        "import_summary": response,
    }
    write_json(data_dir / "out" / "reports" / f"{rule.id}_report.json", report)
    return report
