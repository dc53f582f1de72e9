"""Type definitions for neighborhood lookups."""

import copy
import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any

from shapely.geometry.base import BaseGeometry

from nhood_api.errors import InvalidInputError


def _check_coordinate(label: str, value: Any) -> float:
    # bool is a Real subclass, but True/False are never coordinates
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputError(f"{label} must be a number, got {type(value).__name__}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidInputError(f"{label} must be finite, got {value}")
    return value


@dataclass(frozen=True)
class Point:
    """A longitude/latitude pair.

    In planar mode the same fields carry x/y in dataset units.
    """

    lng: float
    lat: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "lng", _check_coordinate("lng", self.lng))
        object.__setattr__(self, "lat", _check_coordinate("lat", self.lat))

    @classmethod
    def coerce(cls, value: "Point | tuple[float, float] | list[float]") -> "Point":
        """Build a Point from a Point or an (lng, lat) sequence."""
        if isinstance(value, Point):
            return value
        if value is None:
            raise InvalidInputError("point is required")
        if isinstance(value, (str, bytes)):
            raise InvalidInputError("point must be an (lng, lat) pair")
        try:
            lng, lat = value
        except (TypeError, ValueError) as e:
            raise InvalidInputError("point must be an (lng, lat) pair") from e
        return cls(lng, lat)


@dataclass(frozen=True, eq=False)
class Neighborhood:
    """A named neighborhood boundary, read once from the dataset.

    Identity is the ``code``: two records with the same code compare equal
    and hash alike, so sets of neighborhoods deduplicate by code.
    """

    code: str
    name: str
    borough: str | None
    geometry: dict[str, Any]  # GeoJSON Polygon or MultiPolygon
    shape: BaseGeometry = field(repr=False)
    properties: dict[str, Any] = field(default_factory=dict, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Neighborhood):
            return NotImplemented
        return self.code == other.code

    def __hash__(self) -> int:
        return hash(self.code)

    def to_feature(self) -> dict[str, Any]:
        """Return the neighborhood as a GeoJSON Feature.

        The geometry is a copy, so callers may modify the result freely.
        """
        properties = dict(self.properties)
        properties.update(code=self.code, name=self.name, borough=self.borough)
        return {
            "type": "Feature",
            "id": self.code,
            "geometry": copy.deepcopy(self.geometry),
            "properties": properties,
        }
