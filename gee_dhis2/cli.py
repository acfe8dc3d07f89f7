"""CLI entrypoint for the Earth Engine to DHIS2 import pipeline."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from gee_dhis2.common.config_loader import ConfigBundle, load_all_configs, resolve_rules
from gee_dhis2.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from gee_dhis2.common.errors import PipelineError
from gee_dhis2.common.ids import generate_run_id
from gee_dhis2.common.logging import build_logger, log_event
from gee_dhis2.common.time_utils import parse_run_date
from gee_dhis2.gateways.dhis2 import Dhis2Client
from gee_dhis2.gateways.earth_engine import EarthEngineGateway
from gee_dhis2.pipeline.import_rules import ImportRule, run_import_rule
from gee_dhis2.pipeline.orchestrator import GeeDhis2
from gee_dhis2.pipeline.reports import write_run_summary


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=list(COMMANDS))
    parser.add_argument("--rule", default="all")
    parser.add_argument("--run-date", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--strict", action="store_true")
    return parser.parse_args(argv)


def build_geedhis2(bundle: ConfigBundle) -> GeeDhis2:
    dhis2 = Dhis2Client.from_config(bundle.app["dhis2"])
    try:
        gateway = EarthEngineGateway.from_config(bundle.app["earthengine"])
    except Exception:
        dhis2.close()
        raise
    return GeeDhis2(dhis2, gateway)


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    run_date = parse_run_date(args.run_date)
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    data_dir = Path(args.data_dir)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    bundle = load_all_configs(config_dir, overlay_config_dir=overlay_config_dir)

    if args.command == "validate-config":
        log_event(
            logger,
            f"configuration valid: {len(bundle.mappings)} mappings, {len(bundle.import_rules)} import rules",
            stage="validate-config",
            event="CONFIG_VALID",
            status="ok",
        )
        return EXIT_SUCCESS

    rule_ids = resolve_rules(args.rule, bundle)
    geedhis2 = build_geedhis2(bundle)
    had_partial_failure = False

    try:
        for rule_id in rule_ids:
            rule = ImportRule.from_config(rule_id, bundle.import_rules[rule_id])
            log_event(logger, "rule start", stage="import", rule=rule_id, event="RULE_START", status="ok")
            try:
                report = run_import_rule(
                    rule,
                    bundle,
                    geedhis2,
                    data_dir,
                    run_id,
                    run_date,
                    dry_run=args.dry_run,
                )
            except PipelineError as exc:
                had_partial_failure = True
                log_event(
                    logger,
                    f"import failed for rule {rule_id}: {exc}",
                    level=logging.ERROR,
                    stage="import",
                    rule=rule_id,
                    event="RULE_FAIL",
                    status="error",
                    error_code=exc.error_code,
                )
                if exc.error_code == "CONTRACT_ERROR" or args.strict:
                    return EXIT_HARD_FAIL
                continue
            except Exception as exc:
                had_partial_failure = True
                log_event(
                    logger,
                    f"unexpected failure for rule {rule_id}: {exc}",
                    level=logging.ERROR,
                    stage="import",
                    rule=rule_id,
                    event="RULE_FAIL",
                    status="error",
                    error_code="UNEXPECTED_ERROR",
                )
                if args.strict:
                    return EXIT_HARD_FAIL
                continue
            log_event(
                logger,
                "rule end",
                stage="import",
                rule=rule_id,
                event="RULE_END",
                status="ok",
                rows_out=report["counts"]["data_values"],
            )
    finally:
        geedhis2.dhis2.close()

    write_run_summary(data_dir, run_id=run_id, run_date=run_date, rule_ids=rule_ids)
    if had_partial_failure:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
