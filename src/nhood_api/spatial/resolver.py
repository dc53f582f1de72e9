"""Point-in-polygon and adjacency queries over a fixed neighborhood set.

A resolver is built once from the loaded dataset and is read-only from then
on, so a single instance is shared by every request.

Adjacency is the union of three tests, tried in order for each candidate:

1. the candidate touches the subject (shared boundary, no interior overlap),
2. the candidate intersects the subject buffered outward by ``radius``,
3. the candidate's centroid lies within ``radius`` of the subject's centroid.

A test that raises for one candidate counts as a miss for that candidate
only; the query still completes.
"""

import logging
import math
import threading
from collections import OrderedDict
from collections.abc import Iterable, Iterator
from numbers import Real

from shapely import STRtree
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry.base import BaseGeometry

from nhood_api.errors import DataUnavailableError, GeometryError, InvalidInputError
from nhood_api.spatial.geometry import (
    SHAPELY_ERRORS,
    LocalProjection,
    haversine_km,
    planar_distance,
)
from nhood_api.spatial.types import Neighborhood, Point

logger = logging.getLogger(__name__)

# About one mile
DEFAULT_RADIUS_KM = 1.6

COORDINATE_SYSTEMS = ("geographic", "planar")

# Adjacency results kept per resolver, least recently used evicted first
DEFAULT_CACHE_SIZE = 1024


def _check_radius(radius) -> float:
    if isinstance(radius, bool) or not isinstance(radius, Real):
        raise InvalidInputError(f"radius must be a number, got {type(radius).__name__}")
    radius = float(radius)
    if not math.isfinite(radius) or radius < 0:
        raise InvalidInputError(f"radius must be a finite, non-negative number, got {radius}")
    return radius


class NeighborhoodResolver:
    """Answers containment and adjacency queries for a neighborhood set.

    Args:
        neighborhoods: Neighborhoods in dataset order. Containment ties
            (points on a shared boundary) go to the earliest one.
        coordinate_system: ``"geographic"`` for lng/lat input with radii in
            kilometres, or ``"planar"`` when coordinates and radii share a unit.
        default_radius: Radius used by :meth:`find_adjacent` when none is given.
        cache_size: Most adjacency results kept at once.

    Raises:
        DataUnavailableError: If two neighborhoods share a code.
    """

    def __init__(
        self,
        neighborhoods: Iterable[Neighborhood],
        *,
        coordinate_system: str = "geographic",
        default_radius: float = DEFAULT_RADIUS_KM,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ):
        if coordinate_system not in COORDINATE_SYSTEMS:
            raise ValueError(f"coordinate_system must be one of {COORDINATE_SYSTEMS}")
        self.coordinate_system = coordinate_system
        self.default_radius = _check_radius(default_radius)
        if cache_size < 0:
            raise ValueError("cache_size must be non-negative")
        self.cache_size = cache_size

        self._neighborhoods: tuple[Neighborhood, ...] = tuple(neighborhoods)
        self._by_code: dict[str, Neighborhood] = {}
        for n in self._neighborhoods:
            if n.code in self._by_code:
                raise DataUnavailableError(f"Duplicate neighborhood code {n.code!r}")
            self._by_code[n.code] = n

        self._tree = STRtree([n.shape for n in self._neighborhoods]) if self._neighborhoods else None

        # Buffers are built in a kilometre frame for geographic data
        self._projection: LocalProjection | None = None
        if coordinate_system == "geographic" and self._neighborhoods:
            self._projection = LocalProjection.for_bounds(self.bounds)
        self._metric_shapes: dict[str, BaseGeometry | None] = {
            n.code: self._to_metric(n) for n in self._neighborhoods
        }

        self._adjacent_cache: OrderedDict[tuple[str, float], frozenset[Neighborhood]] = OrderedDict()
        self._cache_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Collection access
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._neighborhoods)

    def __iter__(self) -> Iterator[Neighborhood]:
        return iter(self._neighborhoods)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) over every neighborhood."""
        if not self._neighborhoods:
            raise DataUnavailableError("No neighborhoods loaded")
        all_bounds = [n.shape.bounds for n in self._neighborhoods]
        return (
            min(b[0] for b in all_bounds),
            min(b[1] for b in all_bounds),
            max(b[2] for b in all_bounds),
            max(b[3] for b in all_bounds),
        )

    def get(self, code: str) -> Neighborhood | None:
        """Get a neighborhood by code."""
        return self._by_code.get(code)

    def find_by_name(self, name: str) -> Neighborhood | None:
        """Get the first neighborhood whose name matches, ignoring case."""
        wanted = name.strip().lower()
        for n in self._neighborhoods:
            if n.name.lower() == wanted:
                return n
        return None

    def by_borough(self, borough: str) -> list[Neighborhood]:
        """List neighborhoods in a borough, ignoring case, in dataset order."""
        wanted = borough.strip().lower()
        return [n for n in self._neighborhoods if (n.borough or "").lower() == wanted]

    def boroughs(self) -> list[str]:
        """Distinct borough tags, sorted."""
        return sorted({n.borough for n in self._neighborhoods if n.borough})

    # ------------------------------------------------------------------
    # Containment
    # ------------------------------------------------------------------

    def find_containing(self, point: Point | tuple[float, float]) -> Neighborhood | None:
        """Find the neighborhood containing a point.

        Boundaries are inclusive. A point on an edge shared by several
        neighborhoods resolves to the one that comes first in dataset order.

        Returns:
            The containing neighborhood, or None if the point is outside
            every boundary (water, outside the city).

        Raises:
            InvalidInputError: If either coordinate is not a finite number.
        """
        point = Point.coerce(point)
        if self._tree is None:
            return None

        probe = ShapelyPoint(point.lng, point.lat)
        # The tree only narrows by bounding box; keep dataset order for ties
        for idx in sorted(int(i) for i in self._tree.query(probe)):
            neighborhood = self._neighborhoods[idx]
            try:
                if neighborhood.shape.covers(probe):
                    return neighborhood
            except SHAPELY_ERRORS as e:
                logger.warning("%s", GeometryError(neighborhood.code, "covers", e))

        logger.debug("No neighborhood contains (%s, %s)", point.lng, point.lat)
        return None

    # ------------------------------------------------------------------
    # Adjacency
    # ------------------------------------------------------------------

    def find_adjacent(
        self,
        subject: Neighborhood | None,
        radius: float | None = None,
    ) -> frozenset[Neighborhood]:
        """Find neighborhoods touching or near ``subject``.

        Args:
            subject: A previously resolved neighborhood. Never part of the result.
            radius: Buffer and centroid distance, in kilometres for geographic
                data or coordinate units for planar data. Defaults to
                :attr:`default_radius`.

        Returns:
            The adjacent neighborhoods. Order is not meaningful.

        Raises:
            InvalidInputError: If ``subject`` is None or ``radius`` is negative
                or not finite.
        """
        if subject is None:
            raise InvalidInputError("subject neighborhood is required")
        radius = self.default_radius if radius is None else _check_radius(radius)

        cacheable = self._by_code.get(subject.code) is subject
        key = (subject.code, radius)
        if cacheable:
            with self._cache_lock:
                cached = self._adjacent_cache.get(key)
                if cached is not None:
                    self._adjacent_cache.move_to_end(key)
            if cached is not None:
                return cached

        result, complete = self._compute_adjacent(subject, radius)

        # Results with a skipped test are best-effort; recompute next time
        if cacheable and complete:
            with self._cache_lock:
                self._adjacent_cache[key] = result
                self._adjacent_cache.move_to_end(key)
                while len(self._adjacent_cache) > self.cache_size:
                    self._adjacent_cache.popitem(last=False)
        return result

    def _compute_adjacent(
        self, subject: Neighborhood, radius: float
    ) -> tuple[frozenset[Neighborhood], bool]:
        complete = True

        subject_metric = self._metric_shapes.get(subject.code)
        if subject_metric is None or self._by_code.get(subject.code) is not subject:
            subject_metric = self._to_metric(subject)

        buffer = None
        if subject_metric is not None:
            try:
                buffer = self._buffer(subject_metric, radius)
            except SHAPELY_ERRORS as e:
                logger.warning("%s", GeometryError(subject.code, "buffer", e))
        if buffer is None:
            complete = False

        subject_centroid = None
        try:
            subject_centroid = self._centroid(subject)
        except SHAPELY_ERRORS as e:
            logger.warning("%s", GeometryError(subject.code, "centroid", e))
            complete = False

        matched: set[Neighborhood] = set()
        counts = {"touches": 0, "buffer": 0, "centroid": 0}

        for candidate in self._neighborhoods:
            if candidate.code == subject.code:
                continue

            try:
                if self._touches(subject, candidate):
                    matched.add(candidate)
                    counts["touches"] += 1
                    continue
            except SHAPELY_ERRORS as e:
                logger.warning("%s", GeometryError(candidate.code, "touches", e))
                complete = False

            if buffer is not None:
                candidate_metric = self._metric_shapes.get(candidate.code)
                if candidate_metric is None:
                    complete = False
                else:
                    try:
                        if self._buffer_intersects(buffer, candidate_metric):
                            matched.add(candidate)
                            counts["buffer"] += 1
                            continue
                    except SHAPELY_ERRORS as e:
                        logger.warning("%s", GeometryError(candidate.code, "buffer intersection", e))
                        complete = False

            if subject_centroid is not None:
                try:
                    if self._centroid_distance(subject_centroid, candidate) <= radius:
                        matched.add(candidate)
                        counts["centroid"] += 1
                except SHAPELY_ERRORS as e:
                    logger.warning("%s", GeometryError(candidate.code, "centroid distance", e))
                    complete = False

        logger.debug(
            "Adjacency for %s (radius=%s): %d found (touches=%d, buffer=%d, centroid=%d)",
            subject.code,
            radius,
            len(matched),
            counts["touches"],
            counts["buffer"],
            counts["centroid"],
        )
        return frozenset(matched), complete

    # Individual tests. Each may raise one of SHAPELY_ERRORS.

    def _touches(self, subject: Neighborhood, candidate: Neighborhood) -> bool:
        return subject.shape.touches(candidate.shape)

    def _buffer(self, metric_shape: BaseGeometry, radius: float) -> BaseGeometry:
        return metric_shape.buffer(radius)

    def _buffer_intersects(self, buffer: BaseGeometry, candidate_metric: BaseGeometry) -> bool:
        return buffer.intersects(candidate_metric)

    def _centroid(self, neighborhood: Neighborhood) -> tuple[float, float]:
        centroid = neighborhood.shape.centroid
        if centroid.is_empty:
            raise ValueError("empty centroid")
        return centroid.x, centroid.y

    def _centroid_distance(self, subject_centroid: tuple[float, float], candidate: Neighborhood) -> float:
        cx, cy = self._centroid(candidate)
        sx, sy = subject_centroid
        if self.coordinate_system == "geographic":
            return haversine_km(sx, sy, cx, cy)
        return planar_distance(sx, sy, cx, cy)

    def _to_metric(self, neighborhood: Neighborhood) -> BaseGeometry | None:
        """Shape in the frame radii are measured in, or None if it can't be projected."""
        if self._projection is None:
            return neighborhood.shape
        try:
            return self._projection.project(neighborhood.shape)
        except SHAPELY_ERRORS as e:
            logger.warning("%s", GeometryError(neighborhood.code, "projection", e))
            return None
