"""Pydantic schemas for API request/response models."""

from nhood_api.schemas.neighborhood import (
    AdjacentNeighborhoods,
    NeighborhoodCollection,
    NeighborhoodFeature,
    NeighborhoodLookup,
)
from nhood_api.schemas.sales import PropertySale, SalesFilter

__all__ = [
    "AdjacentNeighborhoods",
    "NeighborhoodCollection",
    "NeighborhoodFeature",
    "NeighborhoodLookup",
    "PropertySale",
    "SalesFilter",
]
