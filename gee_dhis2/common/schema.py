"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from gee_dhis2.common.constants import FEATURE_TYPES
from gee_dhis2.common.errors import ConfigError
from gee_dhis2.common.models import normalise_feature_type


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    _assert_mapping(obj, ctx)
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_non_empty_list(value, ctx: str) -> None:
    if not isinstance(value, list) or not value:
        raise ConfigError(f"{ctx} must be a non-empty list")


def validate_app_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    _assert_required_keys(cfg, {"dhis2", "earthengine"}, "app config")
    _assert_no_unknown_keys(cfg, {"dhis2", "earthengine"}, "app config", allow_unknown)

    _assert_required_keys(cfg["dhis2"], {"base_url"}, "dhis2")
    _assert_no_unknown_keys(
        cfg["dhis2"],
        {"base_url", "username", "password", "requests_per_second", "timeout_seconds"},
        "dhis2",
        allow_unknown,
    )
    _assert_required_keys(cfg["earthengine"], set(), "earthengine")
    _assert_no_unknown_keys(
        cfg["earthengine"],
        {"project", "service_account", "private_key_file"},
        "earthengine",
        allow_unknown,
    )
    return cfg


def validate_datasets_config(cfg: dict) -> dict:
    _assert_required_keys(cfg, {"datasets"}, "datasets config")
    datasets = cfg["datasets"]
    if not isinstance(datasets, dict) or not datasets:
        raise ConfigError("datasets must be a non-empty mapping")

    for key, dataset in datasets.items():
        ctx = f"datasets.{key}"
        _assert_required_keys(dataset, {"name", "image_collection", "bands"}, ctx)
        _assert_non_empty_list(dataset["bands"], f"{ctx}.bands")
        names: list[str] = []
        for idx, band in enumerate(dataset["bands"]):
            _assert_required_keys(band, {"name"}, f"{ctx}.bands[{idx}]")
            names.append(band["name"])
        dupes = {name for name in names if names.count(name) > 1}
        if dupes:
            raise ConfigError(f"Duplicate bands in {ctx}: {', '.join(sorted(dupes))}")

    return cfg


def validate_mappings_config(cfg: dict) -> dict:
    _assert_required_keys(cfg, {"mappings"}, "mappings config")
    mappings = cfg["mappings"]
    if not isinstance(mappings, dict) or not mappings:
        raise ConfigError("mappings must be a non-empty mapping")

    for key, mapping in mappings.items():
        ctx = f"mappings.{key}"
        _assert_required_keys(mapping, {"name", "dataset", "bands"}, ctx)
        _assert_non_empty_list(mapping["bands"], f"{ctx}.bands")
        for idx, entry in enumerate(mapping["bands"]):
            _assert_required_keys(entry, {"band", "data_element"}, f"{ctx}.bands[{idx}]")

    return cfg


def validate_import_rules_config(cfg: dict) -> dict:
    _assert_required_keys(cfg, {"import_rules"}, "import rules config")
    rules = cfg["import_rules"] or {}
    _assert_mapping(rules, "import_rules")

    for key, rule in rules.items():
        ctx = f"import_rules.{key}"
        _assert_required_keys(rule, {"name", "org_units", "period", "mappings"}, ctx)
        _assert_non_empty_list(rule["org_units"], f"{ctx}.org_units")
        _assert_non_empty_list(rule["mappings"], f"{ctx}.mappings")
        _assert_required_keys(rule["period"], {"id"}, f"{ctx}.period")
        for idx, org_unit in enumerate(rule["org_units"]):
            if isinstance(org_unit, dict):
                _assert_required_keys(org_unit, {"id"}, f"{ctx}.org_units[{idx}]")
                feature_type = normalise_feature_type(org_unit.get("feature_type", org_unit.get("featureType")))
                if feature_type is not None and feature_type not in FEATURE_TYPES:
                    raise ConfigError(
                        f"{ctx}.org_units[{idx}].feature_type must be one of {', '.join(FEATURE_TYPES)}"
                    )
            elif not isinstance(org_unit, str):
                raise ConfigError(f"{ctx}.org_units[{idx}] must be an id or a mapping")

    cfg["import_rules"] = rules
    return cfg
