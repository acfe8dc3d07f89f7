from __future__ import annotations

from pathlib import Path

import pytest

from gee_dhis2 import cli
from gee_dhis2.cli import parse_args, run_command
from gee_dhis2.common.constants import EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from gee_dhis2.common.fs import read_json
from gee_dhis2.common.models import Observation
from gee_dhis2.pipeline.orchestrator import GeeDhis2


class FakeDhis2:
    def __init__(self):
        self.posted = []
        self.closed = False

    def get_org_unit_geometries(self, org_unit_ids):
        return [{"id": ou_id, "featureType": "POINT", "coordinates": "[-11.5, 8.5]"} for ou_id in org_unit_ids]

    def post_data_value_set(self, data_value_set):
        self.posted.append(data_value_set)
        return {"status": "SUCCESS"}

    def close(self):
        self.closed = True


class FakeGateway:
    def __init__(self, fail: bool = False):
        self.fail = fail

    def get_data(self, query):
        if self.fail:
            raise ConnectionError("earth engine unavailable")
        return [Observation(date=query.interval.end, band=band, value=2.0) for band in query.bands]


def _args(data_dir: Path, *extra: str):
    return parse_args(
        [
            "import",
            "--config-dir",
            "config",
            "--data-dir",
            str(data_dir),
            "--run-date",
            "2026-02-17",
            "--run-id",
            "run-test",
            *extra,
        ]
    )


@pytest.mark.integration
def test_cli_import_generates_expected_artifacts(monkeypatch, tmp_path: Path):
    dhis2 = FakeDhis2()
    monkeypatch.setattr(cli, "build_geedhis2", lambda _bundle: GeeDhis2(dhis2, FakeGateway()))
    data_dir = tmp_path / "data"

    exit_code = run_command(_args(data_dir))

    assert exit_code == EXIT_SUCCESS
    assert len(dhis2.posted) == 1
    assert dhis2.closed is True
    assert (data_dir / "out" / "value_sets" / "sierra_leone_weekly_climate.json").exists()
    assert (data_dir / "run_meta" / "run-test.log.jsonl").exists()
    summary = read_json(data_dir / "out" / "reports" / "run_summary.json")
    assert summary["status"] == "success"
    assert summary["totals"]["data_values"] == 4 * 4


@pytest.mark.integration
def test_cli_gateway_failure_is_partial_unless_strict(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(cli, "build_geedhis2", lambda _bundle: GeeDhis2(FakeDhis2(), FakeGateway(fail=True)))

    assert run_command(_args(tmp_path / "lenient")) == EXIT_PARTIAL
    summary = read_json(tmp_path / "lenient" / "out" / "reports" / "run_summary.json")
    assert summary["status"] == "error"

    assert run_command(_args(tmp_path / "strict", "--strict")) == EXIT_HARD_FAIL


@pytest.mark.integration
def test_cli_validate_config(tmp_path: Path):
    args = parse_args(["validate-config", "--config-dir", "config", "--data-dir", str(tmp_path)])
    assert run_command(args) == EXIT_SUCCESS


@pytest.mark.integration
def test_cli_closes_dhis2_client_when_earth_engine_init_fails(monkeypatch, tmp_path: Path):
    dhis2 = FakeDhis2()

    def fail_init(_cfg):
        raise RuntimeError("earth engine credentials rejected")

    monkeypatch.setattr(cli.Dhis2Client, "from_config", classmethod(lambda _cls, _cfg: dhis2))
    monkeypatch.setattr(cli.EarthEngineGateway, "from_config", staticmethod(fail_init))

    with pytest.raises(RuntimeError):
        run_command(_args(tmp_path / "data"))
    assert dhis2.closed is True
