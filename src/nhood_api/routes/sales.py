"""Property sales endpoints."""

import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status

from nhood_api.dependencies import get_resolver, get_sales
from nhood_api.repositories import sales as sales_repo
from nhood_api.schemas.sales import PropertySale, SalesFilter
from nhood_api.spatial.resolver import NeighborhoodResolver
from nhood_api.spatial.types import Point

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales", tags=["sales"])


def _split_names(value: str | None) -> list[str]:
    if not value:
        return []
    return [name.strip() for name in value.split(",") if name.strip()]


@router.get("", response_model=None)
async def list_sales(
    neighborhood: str | None = Query(default=None, description="Neighborhood name"),
    adjacent: str | None = Query(default=None, description="Comma-separated adjacent neighborhood names"),
    lng: float | None = Query(default=None, description="Resolve the neighborhood from this longitude"),
    lat: float | None = Query(default=None, description="Resolve the neighborhood from this latitude"),
    with_adjacent: bool = Query(default=False, description="Also include sales in neighborhoods adjacent to `neighborhood`"),
    radius: float | None = Query(default=None, description="Adjacency radius in kilometres, with lng/lat or with_adjacent"),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    min_units: int | None = Query(default=None, ge=0),
    max_units: int | None = Query(default=None, ge=0),
    building_class: str | None = Query(default=None, description="Building class prefix, e.g. C"),
    format: Literal["json", "geojson"] = Query(default="json"),
    sales: list[PropertySale] = Depends(get_sales),
    resolver: NeighborhoodResolver = Depends(get_resolver),
) -> list[PropertySale] | dict[str, Any]:
    """List sales, optionally restricted to a neighborhood and its neighbors.

    With ``lng``/``lat`` the neighborhood is resolved from the point and its
    adjacent neighborhoods are included automatically. ``with_adjacent`` does
    the same for a neighborhood given by name.
    """
    names = _split_names(neighborhood) + _split_names(adjacent)

    if (lng is None) != (lat is None):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="lng and lat must be given together",
        )
    if lng is not None:
        subject = resolver.find_containing(Point(lng, lat))
        if subject is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No neighborhood found at ({lng}, {lat})",
            )
        names.extend(sales_repo.neighborhood_names_for(subject, resolver.find_adjacent(subject, radius)))
    if with_adjacent and neighborhood:
        subject = resolver.find_by_name(neighborhood)
        if subject is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Neighborhood {neighborhood!r} not found",
            )
        names.extend(sales_repo.neighborhood_names_for(subject, resolver.find_adjacent(subject, radius)))

    criteria = SalesFilter(
        neighborhoods=names,
        min_price=min_price,
        max_price=max_price,
        min_units=min_units,
        max_units=max_units,
        building_class=building_class,
    )
    matched = sales_repo.filter_sales(sales, criteria)
    logger.debug("Sales query matched %d of %d", len(matched), len(sales))

    if format == "geojson":
        return sales_repo.sales_to_feature_collection(matched)
    return [sale.model_dump(mode="json", by_alias=True) for sale in matched]
