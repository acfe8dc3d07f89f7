from __future__ import annotations

import logging

from gee_dhis2.common.geometry import geometry_from_org_unit, parse_coordinates
from gee_dhis2.common.models import Geometry, OrgUnit
from gee_dhis2.pipeline.geometries import resolve_geometries

SQUARE = [[[[0, 0], [1, 0], [1, 1], [0, 0]]]]


class FakeMetadata:
    def __init__(self, org_units=None):
        self.org_units = org_units or []
        self.calls: list[list[str]] = []

    def get_org_unit_geometries(self, org_unit_ids):
        self.calls.append(list(org_unit_ids))
        return [ou for ou in self.org_units if ou["id"] in org_unit_ids]


def test_point_org_unit_resolves_to_point_geometry():
    org_unit = OrgUnit(id="ou1", feature_type="POINT", coordinates="[10,20]")

    geometries = resolve_geometries([org_unit], FakeMetadata())

    assert geometries == {"ou1": Geometry(type="point", coordinates=[10, 20])}
    assert geometries["ou1"].to_dict() == {"type": "point", "coordinates": [10, 20]}


def test_multi_polygon_org_unit_keeps_nested_structure():
    org_unit = OrgUnit(id="ou1", feature_type="MULTI_POLYGON", coordinates="[[[[0,0],[1,0],[1,1],[0,0]]]]")

    geometry = resolve_geometries([org_unit], FakeMetadata())["ou1"]

    assert geometry.type == "multi-polygon"
    assert geometry.coordinates == SQUARE


def test_polygon_feature_type_is_treated_as_multi_polygon():
    org_unit = OrgUnit(id="ou1", feature_type="POLYGON", coordinates=SQUARE)

    assert geometry_from_org_unit(org_unit) == Geometry(type="multi-polygon", coordinates=SQUARE)


def test_org_units_with_geometry_signal_skip_metadata_fetch():
    metadata = FakeMetadata()
    org_units = [
        OrgUnit(id="ou1", feature_type="POINT", coordinates="[10,20]"),
        OrgUnit(id="ou2", feature_type="NONE"),
    ]

    geometries = resolve_geometries(org_units, metadata)

    assert metadata.calls == []
    assert geometries["ou2"] is None


def test_missing_geometry_info_is_fetched_in_one_batch():
    metadata = FakeMetadata(
        [
            {"id": "ou2", "featureType": "POINT", "coordinates": "[-11.5, 8.2]"},
            {"id": "ou3", "featureType": "MULTI_POLYGON", "coordinates": "[[[[0,0],[1,0],[1,1],[0,0]]]]"},
        ]
    )
    org_units = [
        OrgUnit(id="ou1", feature_type="POINT", coordinates="[10,20]"),
        OrgUnit(id="ou2"),
        OrgUnit(id="ou3"),
        OrgUnit(id="ou4"),
    ]

    geometries = resolve_geometries(org_units, metadata)

    assert metadata.calls == [["ou2", "ou3", "ou4"]]
    assert list(geometries) == ["ou1", "ou2", "ou3", "ou4"]
    assert geometries["ou2"] == Geometry(type="point", coordinates=[-11.5, 8.2])
    assert geometries["ou3"].type == "multi-polygon"
    assert geometries["ou4"] is None


def test_result_has_exactly_one_entry_per_input_id():
    metadata = FakeMetadata([{"id": "unrequested", "featureType": "POINT", "coordinates": "[1,2]"}])
    org_units = [OrgUnit(id="a"), OrgUnit(id="b"), OrgUnit(id="a"), OrgUnit(id="c", feature_type="SYMBOL", coordinates="[1,2]")]

    geometries = resolve_geometries(org_units, metadata)

    assert list(geometries) == ["a", "b", "c"]
    assert all(value is None for value in geometries.values())


def test_malformed_coordinates_yield_no_geometry_and_a_warning(caplog):
    warnings: list[str] = []
    org_units = [
        OrgUnit(id="broken_json", feature_type="POINT", coordinates="[10,"),
        OrgUnit(id="wrong_shape", feature_type="POINT", coordinates="[[10,20]]"),
        OrgUnit(id="flat_polygon", feature_type="MULTI_POLYGON", coordinates="[0,0]"),
    ]

    with caplog.at_level(logging.WARNING, logger="gee_dhis2"):
        geometries = resolve_geometries(org_units, FakeMetadata(), warnings=warnings)

    assert geometries == {"broken_json": None, "wrong_shape": None, "flat_polygon": None}
    assert warnings == [
        "ORG_UNIT_COORDINATES_MALFORMED:broken_json",
        "ORG_UNIT_COORDINATES_MALFORMED:wrong_shape",
        "ORG_UNIT_COORDINATES_MALFORMED:flat_polygon",
    ]
    assert "malformed coordinates" in caplog.text


def test_parse_coordinates_accepts_text_and_lists():
    assert parse_coordinates(None) is None
    assert parse_coordinates("") is None
    assert parse_coordinates("[1.5, 2]") == [1.5, 2]
    assert parse_coordinates([1.5, 2]) == [1.5, 2]


def test_org_unit_from_dict_reads_dhis2_and_config_keys():
    from_api = OrgUnit.from_dict({"id": "ou1", "featureType": "POINT", "coordinates": "[1,2]"})
    from_config = OrgUnit.from_dict({"id": "ou2", "feature_type": "multi_polygon"})

    assert from_api.feature_type == "POINT"
    assert from_api.has_geometry_signal is True
    assert from_config.feature_type == "MULTI_POLYGON"
    assert from_config.has_geometry_signal is False


def test_lowercase_and_hyphenated_feature_types_resolve():
    multi = OrgUnit.from_dict(
        {"id": "a", "feature_type": "multi-polygon", "coordinates": "[[[[0,0],[1,0],[1,1],[0,0]]]]"}
    )
    point = OrgUnit(id="b", feature_type="point", coordinates="[10,20]")

    assert multi.feature_type == "MULTI_POLYGON"
    assert point.feature_type == "POINT"
    assert resolve_geometries([multi, point], FakeMetadata()) == {
        "a": Geometry(type="multi-polygon", coordinates=SQUARE),
        "b": Geometry(type="point", coordinates=[10, 20]),
    }
