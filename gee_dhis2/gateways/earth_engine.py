"""Google Earth Engine access behind a narrow raster-gateway interface.

``EarthEngineGateway`` is the only code that talks to the ``ee`` client.
It selects the requested bands of an image collection over the query
interval and samples them at the query geometry with ``getRegion``. Every
non-null cell of the returned table becomes one ``Observation``; regions
that cover several pixels therefore yield several observations per date.
No aggregation happens here.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Protocol

from gee_dhis2.common.errors import ContractError
from gee_dhis2.common.models import MULTI_POLYGON, POINT, Geometry, Observation, RasterQuery
from gee_dhis2.common.time_utils import date_from_epoch_ms

logger = logging.getLogger(__name__)

REGION_FIXED_COLUMNS = ("id", "longitude", "latitude", "time")


class RasterDataGateway(Protocol):
    def get_data(self, query: RasterQuery) -> list[Observation]:
        ...


def initialize_earth_engine(ee_config: dict, ee_module: Any = None) -> Any:
    """Authenticate the ``ee`` client and return the module."""
    if ee_module is None:
        import ee as ee_module

    service_account = ee_config.get("service_account")
    key_file = ee_config.get("private_key_file")
    project = ee_config.get("project")

    if service_account and key_file:
        credentials = ee_module.ServiceAccountCredentials(service_account, key_file)
        ee_module.Initialize(credentials, project=project)
    else:
        ee_module.Initialize(project=project)
    return ee_module


class EarthEngineGateway:
    def __init__(self, ee_module: Any) -> None:
        self.ee = ee_module

    @classmethod
    def from_config(cls, ee_config: dict) -> "EarthEngineGateway":
        return cls(initialize_earth_engine(ee_config))

    def _to_ee_geometry(self, geometry: Geometry):
        if geometry.type == POINT:
            return self.ee.Geometry.Point(geometry.coordinates)
        if geometry.type == MULTI_POLYGON:
            return self.ee.Geometry.MultiPolygon(geometry.coordinates)
        raise ValueError(f"Unsupported geometry type: {geometry.type}")

    def get_data(self, query: RasterQuery) -> list[Observation]:
        # filterDate excludes its end bound, interval end is inclusive.
        end_exclusive = query.interval.end + timedelta(days=1)
        collection = (
            self.ee.ImageCollection(query.dataset_id)
            .filterDate(query.interval.start.isoformat(), end_exclusive.isoformat())
            .select(list(query.bands))
        )
        region = collection.getRegion(self._to_ee_geometry(query.geometry), query.scale)
        rows = region.getInfo() or []
        observations = observations_from_region(rows)
        logger.debug(
            "raster query returned %d observations",
            len(observations),
            extra={"dataset": query.dataset_id, "event": "RASTER_QUERY", "rows_out": len(observations)},
        )
        return observations


def observations_from_region(rows: list[list[Any]]) -> list[Observation]:
    """Flatten a ``getRegion`` table (header row first) into observations."""
    if not rows:
        return []

    header = [str(column) for column in rows[0]]
    if "time" not in header:
        raise ContractError(f"getRegion header has no time column: {header}")
    time_index = header.index("time")
    band_columns = [
        (index, column)
        for index, column in enumerate(header)
        if column not in REGION_FIXED_COLUMNS
    ]

    observations: list[Observation] = []
    for row in rows[1:]:
        timestamp = row[time_index]
        if timestamp is None:
            continue
        observed_on = date_from_epoch_ms(timestamp)
        for index, band in band_columns:
            value = row[index]
            if value is None:
                continue
            observations.append(Observation(date=observed_on, band=band, value=float(value)))
    return observations
