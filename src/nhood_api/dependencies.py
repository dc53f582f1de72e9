"""FastAPI dependencies for the nhood API."""

from nhood_api.repositories.sales import load_sales
from nhood_api.schemas.sales import PropertySale
from nhood_api.spatial.dataset import load_neighborhoods
from nhood_api.spatial.resolver import NeighborhoodResolver


def get_resolver() -> NeighborhoodResolver:
    """The process-wide neighborhood resolver."""
    return load_neighborhoods()


def get_sales() -> list[PropertySale]:
    """The process-wide sales list."""
    return load_sales()
