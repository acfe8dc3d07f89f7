"""Resolve queryable geometries for a batch of organisation units."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from gee_dhis2.common.geometry import MalformedCoordinatesError, geometry_from_org_unit
from gee_dhis2.common.models import Geometry, OrgUnit

logger = logging.getLogger(__name__)


class OrgUnitMetadataSource(Protocol):
    def get_org_unit_geometries(self, org_unit_ids: list[str]) -> list[dict[str, Any]]:
        ...


def _complete_org_units(org_units: list[OrgUnit], metadata: OrgUnitMetadataSource) -> dict[str, OrgUnit]:
    by_id: dict[str, OrgUnit] = {}
    missing_ids: list[str] = []
    for org_unit in org_units:
        if org_unit.id in by_id:
            continue
        by_id[org_unit.id] = org_unit
        if not org_unit.has_geometry_signal:
            missing_ids.append(org_unit.id)

    if not missing_ids:
        return by_id

    fetched = metadata.get_org_unit_geometries(missing_ids)
    wanted = set(missing_ids)
    for payload in fetched:
        org_unit = OrgUnit.from_dict(payload)
        if org_unit.id in wanted:
            by_id[org_unit.id] = org_unit

    logger.info(
        "fetched geometry metadata for %d of %d org units",
        len(fetched),
        len(missing_ids),
        extra={"event": "ORG_UNIT_METADATA_FETCH", "rows_in": len(missing_ids), "rows_out": len(fetched)},
    )
    return by_id


def resolve_geometries(
    org_units: list[OrgUnit],
    metadata: OrgUnitMetadataSource,
    warnings: list[str] | None = None,
) -> dict[str, Geometry | None]:
    """Return one entry per distinct input id, in input order.

    Org units lacking both a feature type of NONE and a coordinate payload
    are completed with a single batched metadata request. Ids that end up
    without a usable geometry map to None.
    """
    completed = _complete_org_units(org_units, metadata)

    geometries: dict[str, Geometry | None] = {}
    for org_unit_id, org_unit in completed.items():
        try:
            geometries[org_unit_id] = geometry_from_org_unit(org_unit)
        except MalformedCoordinatesError as exc:
            geometries[org_unit_id] = None
            logger.warning(
                "ignoring malformed coordinates: %s",
                exc,
                extra={"org_unit": org_unit_id, "event": "ORG_UNIT_COORDINATES_MALFORMED", "status": "warning"},
            )
            if warnings is not None:
                warnings.append(f"ORG_UNIT_COORDINATES_MALFORMED:{org_unit_id}")

    return geometries
