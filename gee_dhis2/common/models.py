"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Iterator, Mapping

from gee_dhis2.common.errors import ConfigError

POINT = "point"
MULTI_POLYGON = "multi-polygon"


def normalise_feature_type(value: Any) -> str | None:
    if not value:
        return None
    return str(value).strip().upper().replace("-", "_")


@dataclass(frozen=True)
class OrgUnit:
    id: str
    feature_type: str | None = None
    coordinates: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "feature_type", normalise_feature_type(self.feature_type))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "OrgUnit":
        """Build from a DHIS2 metadata object or a config entry.

        DHIS2 uses ``featureType``; config files use ``feature_type``.
        """
        feature_type = payload.get("featureType", payload.get("feature_type"))
        return cls(
            id=str(payload["id"]),
            feature_type=feature_type,
            coordinates=payload.get("coordinates"),
        )

    @property
    def has_geometry_signal(self) -> bool:
        return self.feature_type == "NONE" or bool(self.coordinates)


@dataclass(frozen=True)
class Geometry:
    type: str
    coordinates: Any

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "coordinates": self.coordinates}


@dataclass(frozen=True)
class Interval:
    start: date
    end: date
    type: str = "daily"

    def __post_init__(self) -> None:
        if self.type != "daily":
            raise ValueError(f"Unsupported interval type: {self.type}")
        if self.start > self.end:
            raise ValueError(f"Interval start {self.start} is after end {self.end}")


@dataclass(frozen=True)
class RasterQuery:
    dataset_id: str
    bands: tuple[str, ...]
    geometry: Geometry
    interval: Interval
    scale: float | None = None

    def __post_init__(self) -> None:
        if not self.bands:
            raise ValueError("RasterQuery requires at least one band")
        if len(set(self.bands)) != len(self.bands):
            raise ValueError(f"RasterQuery bands must be unique: {self.bands}")


@dataclass(frozen=True)
class Observation:
    date: date
    band: str
    value: float


@dataclass(frozen=True)
class DataValue:
    data_element: str
    value: str
    org_unit: str
    period: str
    attribute_option_combo: str | None = None
    category_option_combo: str | None = None

    def to_dict(self) -> dict[str, str]:
        out = {
            "dataElement": self.data_element,
            "value": self.value,
            "orgUnit": self.org_unit,
            "period": self.period,
        }
        if self.attribute_option_combo:
            out["attributeOptionCombo"] = self.attribute_option_combo
        if self.category_option_combo:
            out["categoryOptionCombo"] = self.category_option_combo
        return out


@dataclass
class DataValueSet:
    """Value-set envelope plus the diagnostics collected while building it.

    Only ``data_values`` is sent to DHIS2; ``warnings`` and
    ``skipped_org_units`` are reported back to the caller.
    """

    data_values: list[DataValue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    skipped_org_units: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"dataValues": [value.to_dict() for value in self.data_values]}

    def extend(self, other: "DataValueSet") -> None:
        self.data_values.extend(other.data_values)
        self.warnings.extend(other.warnings)
        self.skipped_org_units.extend(other.skipped_org_units)


class BandMapping(Mapping[str, str]):
    """Ordered band -> data element mapping with unique band keys."""

    def __init__(self, pairs: Iterable[tuple[str, str]]) -> None:
        self._items: dict[str, str] = {}
        for band, data_element in pairs:
            if band in self._items:
                raise ConfigError(f"Duplicate band in mapping: {band}")
            if not data_element:
                raise ConfigError(f"Band {band} is mapped to an empty data element")
            self._items[str(band)] = str(data_element)
        if not self._items:
            raise ConfigError("Band mapping must contain at least one band")

    @classmethod
    def from_dict(cls, mapping: Mapping[str, str]) -> "BandMapping":
        return cls(mapping.items())

    @property
    def bands(self) -> tuple[str, ...]:
        return tuple(self._items)

    def __getitem__(self, band: str) -> str:
        return self._items[band]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"BandMapping({self._items!r})"
