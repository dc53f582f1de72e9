"""Neighborhood lookup endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from nhood_api.dependencies import get_resolver
from nhood_api.schemas.neighborhood import (
    AdjacentNeighborhoods,
    NeighborhoodCollection,
    NeighborhoodFeature,
    NeighborhoodLookup,
    features_sorted,
)
from nhood_api.spatial.resolver import NeighborhoodResolver
from nhood_api.spatial.types import Neighborhood, Point

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/neighborhoods", tags=["neighborhoods"])


def _get_or_404(resolver: NeighborhoodResolver, code: str) -> Neighborhood:
    neighborhood = resolver.get(code)
    if neighborhood is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Neighborhood {code} not found",
        )
    return neighborhood


@router.get("", response_model=NeighborhoodCollection)
async def list_neighborhoods(
    borough: str | None = Query(default=None, description="Only neighborhoods in this borough"),
    resolver: NeighborhoodResolver = Depends(get_resolver),
) -> NeighborhoodCollection:
    """List all neighborhoods as a FeatureCollection, in dataset order."""
    neighborhoods = resolver.by_borough(borough) if borough else list(resolver)
    return NeighborhoodCollection(
        features=[NeighborhoodFeature.from_neighborhood(n) for n in neighborhoods]
    )


@router.get("/boroughs", response_model=list[str])
async def list_boroughs(
    resolver: NeighborhoodResolver = Depends(get_resolver),
) -> list[str]:
    """List the distinct borough names."""
    return resolver.boroughs()


@router.get("/lookup", response_model=NeighborhoodLookup)
async def lookup_neighborhood(
    lng: float = Query(..., description="Longitude (WGS84 degrees)"),
    lat: float = Query(..., description="Latitude (WGS84 degrees)"),
    adjacent: bool = Query(default=True, description="Include adjacent neighborhoods"),
    radius: float | None = Query(default=None, description="Adjacency radius in kilometres"),
    resolver: NeighborhoodResolver = Depends(get_resolver),
) -> NeighborhoodLookup:
    """Find the neighborhood containing a point, plus its neighbors.

    Returns 404 when the point is outside every neighborhood (water,
    outside the city).
    """
    point = Point(lng, lat)
    neighborhood = resolver.find_containing(point)
    if neighborhood is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No neighborhood found at ({lng}, {lat})",
        )

    adjacent_features: list[NeighborhoodFeature] = []
    if adjacent:
        neighbors = resolver.find_adjacent(neighborhood, radius)
        logger.info("Resolved %s with %d adjacent neighborhoods", neighborhood.code, len(neighbors))
        adjacent_features = features_sorted(neighbors)

    return NeighborhoodLookup(
        neighborhood=neighborhood.name,
        code=neighborhood.code,
        borough=neighborhood.borough,
        data=NeighborhoodFeature.from_neighborhood(neighborhood),
        adjacent_neighborhoods=adjacent_features,
    )


@router.get("/{code}", response_model=NeighborhoodFeature)
async def get_neighborhood(
    code: str,
    resolver: NeighborhoodResolver = Depends(get_resolver),
) -> NeighborhoodFeature:
    """Get a neighborhood by code."""
    return NeighborhoodFeature.from_neighborhood(_get_or_404(resolver, code))


@router.get("/{code}/adjacent", response_model=AdjacentNeighborhoods)
async def get_adjacent_neighborhoods(
    code: str,
    radius: float | None = Query(default=None, description="Adjacency radius in kilometres"),
    resolver: NeighborhoodResolver = Depends(get_resolver),
) -> AdjacentNeighborhoods:
    """List the neighborhoods adjacent to one neighborhood."""
    neighborhood = _get_or_404(resolver, code)
    neighbors = resolver.find_adjacent(neighborhood, radius)
    return AdjacentNeighborhoods(
        code=neighborhood.code,
        radius=resolver.default_radius if radius is None else radius,
        adjacent_neighborhoods=features_sorted(neighbors),
    )
