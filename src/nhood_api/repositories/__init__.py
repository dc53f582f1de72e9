"""Data access layer for the nhood API."""

from nhood_api.repositories import sales

__all__ = ["sales"]
