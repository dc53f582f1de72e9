"""GeoJSON/Shapely conversion and distance helpers."""

import math
from typing import Any

from shapely.affinity import affine_transform
from shapely.errors import GEOSException, TopologicalError
from shapely.geometry import MultiPolygon, Polygon, shape
from shapely.geometry.base import BaseGeometry

# Mean Earth radius (IUGG)
EARTH_RADIUS_KM = 6371.0088
KM_PER_DEGREE = math.pi * EARTH_RADIUS_KM / 180.0

AREAL_TYPES = ("Polygon", "MultiPolygon")

# Errors shapely raises for malformed or degenerate input
SHAPELY_ERRORS = (GEOSException, TopologicalError, ValueError)


def geojson_to_shape(geometry: dict[str, Any]) -> Polygon | MultiPolygon:
    """Convert a GeoJSON Polygon/MultiPolygon dict to a Shapely geometry.

    Raises:
        ValueError: If the geometry is missing, not areal, or unparsable.
    """
    if not isinstance(geometry, dict):
        raise ValueError("geometry must be a GeoJSON object")
    geom_type = geometry.get("type")
    if geom_type not in AREAL_TYPES:
        raise ValueError(f"unsupported geometry type: {geom_type!r}")
    try:
        geom = shape(geometry)
    except (GEOSException, TopologicalError, ValueError, TypeError, IndexError, KeyError) as e:
        raise ValueError(f"unparsable {geom_type} geometry: {e}") from e
    if geom.is_empty:
        raise ValueError(f"empty {geom_type} geometry")
    return geom


def haversine_km(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    """Great-circle distance between two lng/lat points in kilometres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lng2 - lng1)

    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def planar_distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance in coordinate units."""
    return math.hypot(x2 - x1, y2 - y1)


class LocalProjection:
    """Equirectangular projection to kilometres around a reference point.

    Accurate to well under a percent across a city-sized extent, which is
    enough to buffer by a radius given in kilometres.
    """

    def __init__(self, ref_lng: float, ref_lat: float):
        self.ref_lng = ref_lng
        self.ref_lat = ref_lat
        self._x_scale = KM_PER_DEGREE * math.cos(math.radians(ref_lat))
        self._y_scale = KM_PER_DEGREE

    @classmethod
    def for_bounds(cls, bounds: tuple[float, float, float, float]) -> "LocalProjection":
        """Projection centred on a (min_x, min_y, max_x, max_y) extent."""
        min_x, min_y, max_x, max_y = bounds
        return cls((min_x + max_x) / 2, (min_y + max_y) / 2)

    def project(self, geom: BaseGeometry) -> BaseGeometry:
        """Project a lng/lat geometry into the kilometre frame."""
        return affine_transform(
            geom,
            [
                self._x_scale,
                0.0,
                0.0,
                self._y_scale,
                -self.ref_lng * self._x_scale,
                -self.ref_lat * self._y_scale,
            ],
        )
