"""Geometry helpers for DHIS2 organisation-unit coordinates."""

from __future__ import annotations

import json
from typing import Any

from gee_dhis2.common.models import MULTI_POLYGON, POINT, Geometry, OrgUnit

POLYGON_FEATURE_TYPES = {"POLYGON", "MULTI_POLYGON"}


class MalformedCoordinatesError(ValueError):
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_pair(value: Any) -> bool:
    return isinstance(value, list) and len(value) == 2 and all(_is_number(v) for v in value)


def _is_multi_polygon(value: Any) -> bool:
    if not isinstance(value, list) or not value:
        return False
    for polygon in value:
        if not isinstance(polygon, list) or not polygon:
            return False
        for ring in polygon:
            if not isinstance(ring, list) or not ring:
                return False
            if not all(_is_pair(point) for point in ring):
                return False
    return True


def parse_coordinates(payload: Any) -> Any:
    """Decode a DHIS2 2.30 coordinates payload.

    The API stores coordinates as JSON text; already-decoded lists pass through.
    """
    if payload is None or payload == "":
        return None
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, str):
        raise MalformedCoordinatesError(f"Unsupported coordinates payload type: {type(payload).__name__}")
    try:
        return json.loads(payload)
    except ValueError as exc:
        raise MalformedCoordinatesError(f"Invalid coordinates JSON: {payload[:80]}") from exc


def geometry_from_org_unit(org_unit: OrgUnit) -> Geometry | None:
    """Map an org unit's feature type and coordinates to a queryable geometry.

    Raises MalformedCoordinatesError when coordinates are present but do not
    match the declared feature type.
    """
    if org_unit.feature_type not in {"POINT", *POLYGON_FEATURE_TYPES}:
        return None

    coordinates = parse_coordinates(org_unit.coordinates)
    if not coordinates:
        return None

    if org_unit.feature_type == "POINT":
        if not _is_pair(coordinates):
            raise MalformedCoordinatesError(f"Point coordinates are not a [lon, lat] pair for {org_unit.id}")
        return Geometry(type=POINT, coordinates=coordinates)

    if not _is_multi_polygon(coordinates):
        raise MalformedCoordinatesError(f"Polygon coordinates are not polygon/ring/point nested for {org_unit.id}")
    return Geometry(type=MULTI_POLYGON, coordinates=coordinates)
