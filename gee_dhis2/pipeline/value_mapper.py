"""Map raster observations to DHIS2 data values."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Mapping

from gee_dhis2.common.constants import DAILY_PERIOD_FORMAT, VALUE_DECIMALS
from gee_dhis2.common.models import DataValue, Observation

logger = logging.getLogger(__name__)


def format_value(value: float) -> str:
    # Adding 0.0 folds -0.0 into 0.0.
    return f"{float(value) + 0.0:.{VALUE_DECIMALS}f}"


def format_daily_period(day: date) -> str:
    # Only daily intervals are supported, so the period key is always YYYYMMDD.
    return day.strftime(DAILY_PERIOD_FORMAT)


def to_value_records(
    org_unit_id: str,
    observations: Iterable[Observation],
    mapping: Mapping[str, str],
    *,
    attribute_option_combo: str | None = None,
    category_option_combo: str | None = None,
    warnings: list[str] | None = None,
) -> list[DataValue]:
    records: list[DataValue] = []
    for observation in observations:
        data_element = mapping.get(observation.band)
        if not data_element:
            logger.warning(
                "band not found in mapping: %s",
                observation.band,
                extra={
                    "org_unit": org_unit_id,
                    "band": observation.band,
                    "event": "BAND_NOT_IN_MAPPING",
                    "status": "warning",
                },
            )
            if warnings is not None:
                warnings.append(f"BAND_NOT_IN_MAPPING:{observation.band}")
            continue

        records.append(
            DataValue(
                data_element=data_element,
                value=format_value(observation.value),
                org_unit=org_unit_id,
                period=format_daily_period(observation.date),
                attribute_option_combo=attribute_option_combo,
                category_option_combo=category_option_combo,
            )
        )
    return records
