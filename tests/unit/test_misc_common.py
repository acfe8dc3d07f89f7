from datetime import date

from gee_dhis2.common.ids import generate_run_id
from gee_dhis2.common.time_utils import date_from_epoch_ms, parse_run_date


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("run-")


def test_parse_run_date_defaults_and_iso():
    assert parse_run_date("2026-02-17") == "2026-02-17"
    assert len(parse_run_date(None)) == len("2026-02-17")


def test_date_from_epoch_ms_is_utc():
    assert date_from_epoch_ms(1578182400000) == date(2020, 1, 5)
    assert date_from_epoch_ms(1578182400000 + 86_399_000) == date(2020, 1, 5)
