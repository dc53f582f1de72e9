"""Neighborhood dataset loading.

Reads a GeoJSON FeatureCollection of neighborhood boundaries (NYC NTA
exports or anything shaped like them) into :class:`Neighborhood` records.
Any unreadable file or unusable feature fails the whole load with
:class:`DataUnavailableError`; a partial neighborhood set is never returned.
"""

import json
import logging
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Generic, TypeVar

from shapely.validation import explain_validity

from nhood_api.errors import DataUnavailableError
from nhood_api.spatial.geometry import geojson_to_shape
from nhood_api.spatial.types import Neighborhood

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CODE_KEYS = ("nta2020", "ntacode", "NTACode", "id")
DEFAULT_NAME_KEYS = ("ntaname", "NTAName", "name")
DEFAULT_BOROUGH_KEYS = ("boroname", "BoroName", "boro_name", "borough")


class LoadOnce(Generic[T]):
    """A value built once per process and read-only afterwards.

    ``get()`` runs the factory on first access. Concurrent first callers
    block on a lock and all receive the same instance. If the factory
    raises, nothing is stored and the next ``get()`` tries again.
    """

    def __init__(self, factory: Callable[[], T], name: str):
        self._factory = factory
        self._name = name
        self._lock = threading.Lock()
        self._value: T | None = None
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def get(self) -> T:
        if self._loaded:
            return self._value  # type: ignore[return-value]
        with self._lock:
            if not self._loaded:
                logger.info("Loading %s", self._name)
                self._value = self._factory()
                self._loaded = True
        return self._value  # type: ignore[return-value]

    def reset(self) -> None:
        """Drop the loaded value. Only meant for tests."""
        with self._lock:
            self._value = None
            self._loaded = False


def _first_value(mapping: dict[str, Any], keys: Sequence[str]) -> str | None:
    for key in keys:
        value = mapping.get(key)
        if value is None:
            continue
        value = str(value).strip()
        if value:
            return value
    return None


def parse_feature(
    feature: Any,
    index: int,
    *,
    code_keys: Sequence[str] = DEFAULT_CODE_KEYS,
    name_keys: Sequence[str] = DEFAULT_NAME_KEYS,
    borough_keys: Sequence[str] = DEFAULT_BOROUGH_KEYS,
) -> Neighborhood:
    """Convert one GeoJSON Feature into a Neighborhood.

    Raises:
        DataUnavailableError: If the feature lacks a usable geometry, code or name.
    """
    if not isinstance(feature, dict):
        raise DataUnavailableError(f"Feature {index} is not a JSON object")

    properties = feature.get("properties") or {}
    if not isinstance(properties, dict):
        raise DataUnavailableError(f"Feature {index} has non-object properties")

    code = _first_value(properties, code_keys)
    if code is None and feature.get("id") is not None:
        code = str(feature["id"]).strip() or None
    if code is None:
        raise DataUnavailableError(f"Feature {index} has no code (tried {', '.join(code_keys)})")

    name = _first_value(properties, name_keys)
    if name is None:
        raise DataUnavailableError(f"Feature {index} ({code}) has no name (tried {', '.join(name_keys)})")

    geometry = feature.get("geometry")
    try:
        geom = geojson_to_shape(geometry)
    except ValueError as e:
        raise DataUnavailableError(f"Feature {index} ({code}) has unusable geometry: {e}") from e

    if not geom.is_valid:
        logger.warning("Neighborhood %s has invalid geometry: %s", code, explain_validity(geom))

    return Neighborhood(
        code=code,
        name=name,
        borough=_first_value(properties, borough_keys),
        geometry=geometry,
        shape=geom,
        properties=properties,
    )


def parse_feature_collection(
    data: Any,
    *,
    code_keys: Sequence[str] = DEFAULT_CODE_KEYS,
    name_keys: Sequence[str] = DEFAULT_NAME_KEYS,
    borough_keys: Sequence[str] = DEFAULT_BOROUGH_KEYS,
) -> list[Neighborhood]:
    """Convert a GeoJSON FeatureCollection into Neighborhoods, in file order.

    Raises:
        DataUnavailableError: If the collection or any feature is unusable.
    """
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise DataUnavailableError("Neighborhood data is not a GeoJSON FeatureCollection")
    features = data.get("features")
    if not isinstance(features, list):
        raise DataUnavailableError("Neighborhood FeatureCollection has no features list")

    return [
        parse_feature(
            feature,
            i,
            code_keys=code_keys,
            name_keys=name_keys,
            borough_keys=borough_keys,
        )
        for i, feature in enumerate(features)
    ]


def read_geojson(path: str | Path, label: str) -> Any:
    """Read a JSON file, turning I/O and decode failures into DataUnavailableError."""
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise DataUnavailableError(f"{label} file not found: {path}") from e
    except OSError as e:
        raise DataUnavailableError(f"Cannot read {label} file {path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DataUnavailableError(f"{label} file {path} is not valid JSON: {e}") from e


def read_neighborhoods(
    path: str | Path,
    *,
    code_keys: Sequence[str] = DEFAULT_CODE_KEYS,
    name_keys: Sequence[str] = DEFAULT_NAME_KEYS,
    borough_keys: Sequence[str] = DEFAULT_BOROUGH_KEYS,
) -> list[Neighborhood]:
    """Read neighborhoods from a GeoJSON file.

    Raises:
        DataUnavailableError: If the file is missing, unreadable, unparsable,
            or holds no neighborhoods.
    """
    data = read_geojson(path, "neighborhood")
    neighborhoods = parse_feature_collection(
        data,
        code_keys=code_keys,
        name_keys=name_keys,
        borough_keys=borough_keys,
    )
    if not neighborhoods:
        raise DataUnavailableError(f"Neighborhood file {path} contains no features")

    logger.info("Loaded %d neighborhoods from %s", len(neighborhoods), path)
    return neighborhoods
