"""DHIS2 Web API access: org-unit geometry metadata and data value sets."""

from __future__ import annotations

from typing import Any

from gee_dhis2.common.http import HttpClient, HttpRequestError, TimeoutConfig

ORG_UNIT_GEOMETRY_FIELDS = "id,featureType,coordinates"


class Dhis2Client:
    def __init__(self, base_url: str, http_client: HttpClient) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http_client

    @classmethod
    def from_config(cls, dhis2_config: dict) -> "Dhis2Client":
        username = dhis2_config.get("username")
        password = dhis2_config.get("password")
        auth = (str(username), str(password)) if username and password else None
        read_timeout = float(dhis2_config.get("timeout_seconds", 120))
        client = HttpClient(
            auth=auth,
            timeout=TimeoutConfig(connect=20, read=read_timeout),
            rate_per_sec=float(dhis2_config.get("requests_per_second", 5.0)),
        )
        return cls(dhis2_config["base_url"], client)

    def close(self) -> None:
        self.http.close()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/api/{path.lstrip('/')}"

    def get_org_unit_geometries(self, org_unit_ids: list[str]) -> list[dict[str, Any]]:
        # 2.30 servers expose featureType/coordinates rather than ou.geometry.
        if not org_unit_ids:
            return []
        payload = self.http.get_json(
            self._url("metadata"),
            params={
                "organisationUnits:fields": ORG_UNIT_GEOMETRY_FIELDS,
                "organisationUnits:filter": f"id:in:[{','.join(org_unit_ids)}]",
            },
        )
        org_units = payload.get("organisationUnits") or []
        if not isinstance(org_units, list):
            raise HttpRequestError("Malformed metadata response: organisationUnits is not a list")
        return org_units

    def post_data_value_set(self, data_value_set: dict[str, Any]) -> dict[str, Any]:
        return self.http.post_json(self._url("dataValueSets"), payload=data_value_set)
