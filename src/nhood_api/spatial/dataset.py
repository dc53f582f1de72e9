"""Process-wide neighborhood dataset and the module-level query functions."""

from nhood_api.config import settings
from nhood_api.spatial.loader import LoadOnce, read_neighborhoods
from nhood_api.spatial.resolver import NeighborhoodResolver
from nhood_api.spatial.types import Neighborhood, Point


def _build_resolver() -> NeighborhoodResolver:
    neighborhoods = read_neighborhoods(
        settings.neighborhoods_path,
        code_keys=settings.code_keys,
        name_keys=settings.name_keys,
        borough_keys=settings.borough_keys,
    )
    return NeighborhoodResolver(
        neighborhoods,
        coordinate_system=settings.coordinate_system,
        default_radius=settings.adjacency_radius,
        cache_size=settings.adjacency_cache_size,
    )


neighborhood_dataset: LoadOnce[NeighborhoodResolver] = LoadOnce(_build_resolver, "neighborhood dataset")


def load_neighborhoods() -> NeighborhoodResolver:
    """Return the process-wide resolver, loading the dataset on first call.

    Raises:
        DataUnavailableError: If the configured dataset cannot be read or parsed.
    """
    return neighborhood_dataset.get()


def find_containing_neighborhood(point: Point | tuple[float, float]) -> Neighborhood | None:
    """Find the neighborhood containing ``point`` in the process-wide dataset."""
    return load_neighborhoods().find_containing(point)


def find_adjacent_neighborhoods(
    subject: Neighborhood | None, radius: float | None = None
) -> frozenset[Neighborhood]:
    """Find neighborhoods adjacent to ``subject`` in the process-wide dataset."""
    return load_neighborhoods().find_adjacent(subject, radius)
