"""Neighborhood schemas - GeoJSON views of resolved neighborhoods."""

from typing import Any

from pydantic import BaseModel, Field

from nhood_api.spatial.types import Neighborhood


class NeighborhoodFeature(BaseModel):
    """A neighborhood as a GeoJSON Feature."""

    type: str = "Feature"
    id: str
    geometry: dict[str, Any] = Field(
        ...,
        description="GeoJSON Polygon or MultiPolygon boundary",
    )
    properties: dict[str, Any]

    @classmethod
    def from_neighborhood(cls, neighborhood: Neighborhood) -> "NeighborhoodFeature":
        return cls.model_validate(neighborhood.to_feature())


class NeighborhoodCollection(BaseModel):
    """A GeoJSON FeatureCollection of neighborhoods."""

    type: str = "FeatureCollection"
    features: list[NeighborhoodFeature]


class NeighborhoodLookup(BaseModel):
    """Response for a point lookup: the containing neighborhood and its neighbors."""

    neighborhood: str = Field(..., description="Display name of the containing neighborhood")
    code: str
    borough: str | None = None
    data: NeighborhoodFeature
    adjacent_neighborhoods: list[NeighborhoodFeature] = Field(default_factory=list)


class AdjacentNeighborhoods(BaseModel):
    """Response listing the neighborhoods adjacent to one neighborhood."""

    code: str
    radius: float
    adjacent_neighborhoods: list[NeighborhoodFeature]


def features_sorted(neighborhoods) -> list[NeighborhoodFeature]:
    """Feature views ordered by code, for stable responses."""
    return [NeighborhoodFeature.from_neighborhood(n) for n in sorted(neighborhoods, key=lambda n: n.code)]
