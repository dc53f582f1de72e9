"""Pytest configuration and fixtures for nhood API tests."""

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from nhood_api.dependencies import get_resolver, get_sales
from nhood_api.main import app
from nhood_api.repositories.sales import parse_sales
from nhood_api.spatial.loader import parse_feature_collection
from nhood_api.spatial.resolver import NeighborhoodResolver


def square(x0: float, y0: float, x1: float, y1: float) -> dict:
    """GeoJSON Polygon for an axis-aligned rectangle."""
    return {
        "type": "Polygon",
        "coordinates": [[[x0, y0], [x1, y0], [x1, y1], [x0, y1], [x0, y0]]],
    }


def feature(code: str, name: str, geometry: dict, borough: str | None = "Manhattan") -> dict:
    """GeoJSON Feature shaped like the NYC 2020 NTA export."""
    properties = {"nta2020": code, "ntaname": name}
    if borough is not None:
        properties["boroname"] = borough
    return {"type": "Feature", "properties": properties, "geometry": geometry}


def collection(*features: dict) -> dict:
    return {"type": "FeatureCollection", "features": list(features)}


def planar_resolver(*features: dict, **kwargs) -> NeighborhoodResolver:
    """Resolver over planar test geometry, radius in coordinate units."""
    kwargs.setdefault("default_radius", 0.25)
    return NeighborhoodResolver(
        parse_feature_collection(collection(*features)),
        coordinate_system="planar",
        **kwargs,
    )


# A small lower-Manhattan-like layout. 0.01 degrees of longitude is about
# 0.84 km at this latitude; 0.01 degrees of latitude is about 1.11 km.
NYC_FEATURES = [
    feature("MN0301", "East Village", square(-73.99, 40.72, -73.98, 40.73)),
    feature("MN0302", "Lower East Side", square(-73.99, 40.71, -73.98, 40.72)),
    # 0.005 degrees (~0.42 km) east of East Village, not touching
    feature("MN0303", "Alphabet City", square(-73.975, 40.72, -73.965, 40.73)),
    # ~7.6 km east of East Village
    feature("QN0101", "Far Hills", square(-73.90, 40.72, -73.89, 40.73), borough="Queens"),
]

SALES_FEATURES = [
    {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [-73.985, 40.725]},
        "properties": {
            "id": "385-38",
            "address": "21-23 AVENUE C, Manhattan, New York, NY 10009",
            "neighborhood": "EAST VILLAGE",
            "buildingClass": "C4",
            "price": 210326,
            "units": 22,
            "residentialUnits": 20,
            "commercialUnits": 2,
            "yearBuilt": 1900,
            "landSqFt": 3315,
            "grossSqFt": 17160,
            "saleDate": "2024-05-15",
        },
    },
    {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [-73.985, 40.715]},
        "properties": {
            "id": "392-33",
            "address": "155 ORCHARD STREET, Manhattan, New York, NY 10002",
            "neighborhood": "Lower East Side",
            "buildingClass": "D1",
            "price": 2000000,
            "units": 18,
            "saleDate": 45468,
        },
    },
    {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [-73.895, 40.725]},
        "properties": {
            "id": "406-14",
            "address": "1 FAR STREET, Queens, New York, NY 11101",
            "neighborhood": "Far Hills",
            "buildingClass": "C1",
            "price": 11032000,
            "units": 10,
            "saleDate": "2024-07-01T04:00:00.000Z",
        },
    },
]


@pytest.fixture
def nyc_geojson() -> dict:
    return collection(*NYC_FEATURES)


@pytest.fixture
def nyc_resolver(nyc_geojson) -> NeighborhoodResolver:
    """Geographic resolver over the lower-Manhattan-like layout."""
    return NeighborhoodResolver(parse_feature_collection(nyc_geojson))


@pytest.fixture
def neighborhoods_file(tmp_path, nyc_geojson):
    path = tmp_path / "nta.geojson"
    path.write_text(json.dumps(nyc_geojson))
    return path


@pytest.fixture
def sales_geojson() -> dict:
    return collection(*SALES_FEATURES)


@pytest.fixture
def sales_file(tmp_path, sales_geojson):
    path = tmp_path / "sales.geojson"
    path.write_text(json.dumps(sales_geojson))
    return path


@pytest_asyncio.fixture
async def client(nyc_resolver, sales_geojson):
    """Async test client for the FastAPI app, backed by the fixture datasets."""
    sales = parse_sales(sales_geojson)
    app.dependency_overrides[get_resolver] = lambda: nyc_resolver
    app.dependency_overrides[get_sales] = lambda: sales

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
