"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gee_dhis2.common.datasets import DatasetCatalog, MappingDefinition, build_mapping_definitions
from gee_dhis2.common.errors import ConfigError
from gee_dhis2.common.fs import read_yaml
from gee_dhis2.common.schema import (
    validate_app_config,
    validate_datasets_config,
    validate_import_rules_config,
    validate_mappings_config,
)

ENV_OVERRIDES = {
    "DHIS2_BASE_URL": ("dhis2", "base_url"),
    "DHIS2_USERNAME": ("dhis2", "username"),
    "DHIS2_PASSWORD": ("dhis2", "password"),
    "EE_PROJECT": ("earthengine", "project"),
    "EE_SERVICE_ACCOUNT": ("earthengine", "service_account"),
    "EE_PRIVATE_KEY_FILE": ("earthengine", "private_key_file"),
}


@dataclass(frozen=True)
class ConfigBundle:
    app: dict
    datasets: DatasetCatalog
    mappings: dict[str, MappingDefinition]
    import_rules: dict[str, dict]


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if not isinstance(base, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must contain a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def _apply_env_overrides(cfg: dict, environ: dict[str, str]) -> dict:
    out = {section: dict(values) if isinstance(values, dict) else values for section, values in cfg.items()}
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if not value:
            continue
        if out.get(section) is None:
            out[section] = {}
        if isinstance(out[section], dict):
            out[section][key] = value
    return out


def load_all_configs(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
    environ: dict[str, str] | None = None,
) -> ConfigBundle:
    def _load(filename: str) -> dict:
        overlay_path = (overlay_config_dir / filename) if overlay_config_dir is not None else None
        return _load_yaml_with_overlay(config_dir / filename, overlay_path)

    app = _apply_env_overrides(_load("app.yml"), dict(os.environ) if environ is None else environ)
    app = validate_app_config(app, allow_unknown=allow_unknown)

    catalog = DatasetCatalog.from_config(validate_datasets_config(_load("datasets.yml")))
    mappings = build_mapping_definitions(validate_mappings_config(_load("mappings.yml")), catalog)

    rules = validate_import_rules_config(_load("import_rules.yml"))["import_rules"]
    for rule_id, rule in rules.items():
        unknown = sorted(set(rule["mappings"]) - set(mappings))
        if unknown:
            raise ConfigError(f"Import rule {rule_id} references unknown mappings: {', '.join(unknown)}")

    return ConfigBundle(app=app, datasets=catalog, mappings=mappings, import_rules=rules)


def resolve_rules(target: str, bundle: ConfigBundle) -> list[str]:
    if target == "all":
        return list(bundle.import_rules)
    if target not in bundle.import_rules:
        raise ConfigError(f"Unknown import rule: {target}")
    return [target]
