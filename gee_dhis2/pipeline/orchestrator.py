"""Build DHIS2 value sets from Earth Engine data, one org unit at a time."""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol

from gee_dhis2.common.models import BandMapping, DataValueSet, Interval, OrgUnit, RasterQuery
from gee_dhis2.gateways.earth_engine import RasterDataGateway
from gee_dhis2.pipeline.geometries import OrgUnitMetadataSource, resolve_geometries
from gee_dhis2.pipeline.value_mapper import to_value_records

logger = logging.getLogger(__name__)


class Dhis2Api(OrgUnitMetadataSource, Protocol):
    def post_data_value_set(self, data_value_set: dict[str, Any]) -> dict[str, Any]:
        ...

    def close(self) -> None:
        ...


class GeeDhis2:
    """Ties geometry resolution, raster queries and value mapping together.

    Instances hold only their two collaborators, so repeated or scheduled
    runs do not interfere with each other.
    """

    def __init__(self, dhis2: Dhis2Api, gateway: RasterDataGateway) -> None:
        self.dhis2 = dhis2
        self.gateway = gateway

    def build_value_set(
        self,
        dataset_id: str,
        mapping: BandMapping,
        org_units: list[OrgUnit],
        interval: Interval,
        scale: float | None = None,
        *,
        attribute_option_combo: str | None = None,
    ) -> DataValueSet:
        value_set = DataValueSet()
        geometries = resolve_geometries(org_units, self.dhis2, warnings=value_set.warnings)

        # Sequential on purpose: at most one raster request in flight.
        for org_unit_id, geometry in geometries.items():
            if geometry is None:
                value_set.skipped_org_units.append(org_unit_id)
                logger.debug(
                    "org unit has no geometry, skipping",
                    extra={"org_unit": org_unit_id, "dataset": dataset_id, "event": "ORG_UNIT_SKIPPED"},
                )
                continue

            query = RasterQuery(
                dataset_id=dataset_id,
                bands=mapping.bands,
                geometry=geometry,
                interval=interval,
                scale=scale,
            )
            started = time.monotonic()
            observations = self.gateway.get_data(query)
            records = to_value_records(
                org_unit_id,
                observations,
                mapping,
                attribute_option_combo=attribute_option_combo,
                warnings=value_set.warnings,
            )
            value_set.data_values.extend(records)
            logger.info(
                "org unit mapped",
                extra={
                    "org_unit": org_unit_id,
                    "dataset": dataset_id,
                    "event": "ORG_UNIT_MAPPED",
                    "status": "ok",
                    "duration_ms": int((time.monotonic() - started) * 1000),
                    "rows_in": len(observations),
                    "rows_out": len(records),
                },
            )

        return value_set

    def submit(self, value_set: DataValueSet) -> dict[str, Any]:
        return self.dhis2.post_data_value_set(value_set.to_dict())
