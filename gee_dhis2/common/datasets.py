"""Typed lookups over the dataset and mapping configuration tables."""

from __future__ import annotations

from dataclasses import dataclass

from gee_dhis2.common.errors import ConfigError, DatasetNotFoundError
from gee_dhis2.common.models import BandMapping


@dataclass(frozen=True)
class DatasetBand:
    name: str
    units: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class DatasetDescriptor:
    key: str
    name: str
    image_collection: str
    bands: tuple[DatasetBand, ...]
    default_scale: float | None = None

    @property
    def band_names(self) -> tuple[str, ...]:
        return tuple(band.name for band in self.bands)


@dataclass(frozen=True)
class MappingDefinition:
    key: str
    name: str
    dataset: str
    band_mapping: BandMapping
    attribute_option_combo: str | None = None


class DatasetCatalog:
    def __init__(self, descriptors: dict[str, DatasetDescriptor]) -> None:
        self._descriptors = dict(descriptors)

    @classmethod
    def from_config(cls, cfg: dict) -> "DatasetCatalog":
        descriptors = {}
        for key, dataset in cfg["datasets"].items():
            bands = tuple(
                DatasetBand(
                    name=str(band["name"]),
                    units=band.get("units"),
                    description=band.get("description"),
                )
                for band in dataset["bands"]
            )
            scale = dataset.get("default_scale")
            descriptors[key] = DatasetDescriptor(
                key=key,
                name=dataset["name"],
                image_collection=dataset["image_collection"],
                bands=bands,
                default_scale=float(scale) if scale is not None else None,
            )
        return cls(descriptors)

    def __contains__(self, key: str) -> bool:
        return key in self._descriptors

    def keys(self) -> list[str]:
        return list(self._descriptors)

    def get(self, key: str) -> DatasetDescriptor:
        try:
            return self._descriptors[key]
        except KeyError:
            raise DatasetNotFoundError(f"Dataset not found in catalog: {key}") from None

    def bands_for(self, key: str) -> tuple[str, ...]:
        return self.get(key).band_names


def build_mapping_definitions(cfg: dict, catalog: DatasetCatalog) -> dict[str, MappingDefinition]:
    definitions = {}
    for key, mapping in cfg["mappings"].items():
        available = set(catalog.bands_for(mapping["dataset"]))
        pairs = [(str(entry["band"]), str(entry["data_element"])) for entry in mapping["bands"]]
        unknown = sorted({band for band, _ in pairs} - available)
        if unknown:
            raise ConfigError(
                f"Mapping {key} uses bands not offered by dataset {mapping['dataset']}: {', '.join(unknown)}"
            )
        definitions[key] = MappingDefinition(
            key=key,
            name=mapping["name"],
            dataset=mapping["dataset"],
            band_mapping=BandMapping(pairs),
            attribute_option_combo=mapping.get("attribute_option_combo"),
        )
    return definitions
