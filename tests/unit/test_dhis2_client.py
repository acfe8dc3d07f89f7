from __future__ import annotations

import pytest

from gee_dhis2.common.http import HttpRequestError
from gee_dhis2.gateways.dhis2 import Dhis2Client


class FakeHttpClient:
    def __init__(self, payload=None):
        self.payload = payload if payload is not None else {}
        self.gets: list[tuple[str, dict]] = []
        self.posts: list[tuple[str, dict]] = []

    def get_json(self, url: str, **kwargs):
        self.gets.append((url, kwargs))
        return self.payload

    def post_json(self, url: str, **kwargs):
        self.posts.append((url, kwargs))
        return {"status": "SUCCESS"}

    def close(self):
        return None


def test_org_unit_geometries_use_one_filtered_metadata_request():
    http = FakeHttpClient({"organisationUnits": [{"id": "ou1", "featureType": "POINT", "coordinates": "[1,2]"}]})
    client = Dhis2Client("https://play.dhis2.org/2.30/", http)

    org_units = client.get_org_unit_geometries(["ou1", "ou2"])

    assert org_units == [{"id": "ou1", "featureType": "POINT", "coordinates": "[1,2]"}]
    assert http.gets == [
        (
            "https://play.dhis2.org/2.30/api/metadata",
            {
                "params": {
                    "organisationUnits:fields": "id,featureType,coordinates",
                    "organisationUnits:filter": "id:in:[ou1,ou2]",
                }
            },
        )
    ]


def test_missing_org_units_key_means_no_geometry():
    client = Dhis2Client("https://dhis2.example.org", FakeHttpClient({}))
    assert client.get_org_unit_geometries(["ou1"]) == []


def test_no_ids_means_no_request():
    http = FakeHttpClient()
    assert Dhis2Client("https://dhis2.example.org", http).get_org_unit_geometries([]) == []
    assert http.gets == []


def test_malformed_metadata_response_raises():
    client = Dhis2Client("https://dhis2.example.org", FakeHttpClient({"organisationUnits": "nope"}))
    with pytest.raises(HttpRequestError):
        client.get_org_unit_geometries(["ou1"])


def test_post_data_value_set_passes_envelope_through():
    http = FakeHttpClient()
    envelope = {"dataValues": [{"dataElement": "de1", "value": "1.000000000000000000", "orgUnit": "ou1", "period": "20200105"}]}

    response = Dhis2Client("https://dhis2.example.org", http).post_data_value_set(envelope)

    assert response == {"status": "SUCCESS"}
    assert http.posts == [("https://dhis2.example.org/api/dataValueSets", {"payload": envelope})]


def test_from_config_sets_basic_auth():
    client = Dhis2Client.from_config({"base_url": "https://dhis2.example.org", "username": "admin", "password": "district"})
    try:
        assert client.http.session.auth == ("admin", "district")
        assert client.base_url == "https://dhis2.example.org"
    finally:
        client.close()
