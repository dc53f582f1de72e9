"""Sales repository - data access for the geocoded sales dataset."""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from nhood_api.config import settings
from nhood_api.errors import DataUnavailableError
from nhood_api.schemas.sales import PropertySale, SalesFilter
from nhood_api.spatial.loader import LoadOnce, read_geojson
from nhood_api.spatial.types import Neighborhood

logger = logging.getLogger(__name__)


def parse_sales(data: Any) -> list[PropertySale]:
    """Convert a GeoJSON FeatureCollection of sale points into PropertySales."""
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise DataUnavailableError("Sales data is not a GeoJSON FeatureCollection")
    features = data.get("features")
    if not isinstance(features, list):
        raise DataUnavailableError("Sales FeatureCollection has no features list")

    sales = []
    for i, feature in enumerate(features):
        if not isinstance(feature, dict):
            raise DataUnavailableError(f"Sale feature {i} is not a JSON object")
        properties = feature.get("properties") or {}
        if not isinstance(properties, dict):
            raise DataUnavailableError(f"Sale feature {i} has non-object properties")
        record = dict(properties)
        geometry = feature.get("geometry")
        if isinstance(geometry, dict) and geometry.get("type") == "Point":
            record["location"] = geometry.get("coordinates")
        try:
            sales.append(PropertySale.model_validate(record))
        except ValidationError as e:
            raise DataUnavailableError(f"Sale feature {i} is invalid: {e}") from e
    return sales


def read_sales(path: str | Path) -> list[PropertySale]:
    """Read sales from a geocoded GeoJSON file.

    Raises:
        DataUnavailableError: If the file is missing, unreadable or malformed.
    """
    sales = parse_sales(read_geojson(path, "sales"))
    logger.info("Loaded %d sales from %s", len(sales), path)
    return sales


sales_dataset: LoadOnce[list[PropertySale]] = LoadOnce(
    lambda: read_sales(settings.sales_path), "sales dataset"
)


def load_sales() -> list[PropertySale]:
    """Return the process-wide sales list, loading it on first call."""
    return sales_dataset.get()


def _matches(sale: PropertySale, criteria: SalesFilter, names: set[str]) -> bool:
    if names and sale.neighborhood.lower() not in names:
        return False
    if criteria.min_price is not None or criteria.max_price is not None:
        if sale.price is None:
            return False
        if criteria.min_price is not None and sale.price < criteria.min_price:
            return False
        if criteria.max_price is not None and sale.price > criteria.max_price:
            return False
    if criteria.min_units is not None or criteria.max_units is not None:
        if sale.units is None:
            return False
        if criteria.min_units is not None and sale.units < criteria.min_units:
            return False
        if criteria.max_units is not None and sale.units > criteria.max_units:
            return False
    if criteria.building_class:
        if not (sale.building_class or "").upper().startswith(criteria.building_class.upper()):
            return False
    return True


def filter_sales(sales: Iterable[PropertySale], criteria: SalesFilter) -> list[PropertySale]:
    """Keep the sales matching every set criterion, preserving order."""
    names = {n.strip().lower() for n in criteria.neighborhoods if n.strip()}
    return [s for s in sales if _matches(s, criteria, names)]


def neighborhood_names_for(
    subject: Neighborhood, adjacent: Iterable[Neighborhood] = ()
) -> list[str]:
    """Names to join sales on: the subject first, then its neighbors by name."""
    names = [subject.name]
    for n in sorted(adjacent, key=lambda n: n.name):
        if n.name not in names:
            names.append(n.name)
    return names


def sales_to_feature_collection(sales: Iterable[PropertySale]) -> dict[str, Any]:
    """Convert sales to a GeoJSON FeatureCollection, skipping unlocated ones."""
    features = []
    for sale in sales:
        if sale.location is None:
            continue
        properties = sale.model_dump(mode="json", by_alias=True, exclude={"location"})
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": list(sale.location)},
                "properties": properties,
            }
        )
    return {"type": "FeatureCollection", "features": features}
