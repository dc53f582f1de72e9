"""Spatial neighborhood lookups: containment, adjacency and dataset loading."""

from nhood_api.spatial.dataset import (
    find_adjacent_neighborhoods,
    find_containing_neighborhood,
    load_neighborhoods,
    neighborhood_dataset,
)
from nhood_api.spatial.loader import LoadOnce, parse_feature_collection, read_neighborhoods
from nhood_api.spatial.resolver import DEFAULT_RADIUS_KM, NeighborhoodResolver
from nhood_api.spatial.types import Neighborhood, Point

__all__ = [
    "DEFAULT_RADIUS_KM",
    "LoadOnce",
    "Neighborhood",
    "NeighborhoodResolver",
    "Point",
    "find_adjacent_neighborhoods",
    "find_containing_neighborhood",
    "load_neighborhoods",
    "neighborhood_dataset",
    "parse_feature_collection",
    "read_neighborhoods",
]
