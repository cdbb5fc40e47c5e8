"""HTTP client for the Bakestock API."""

from src.infrastructure.client.bakestock_client import BakestockClient

__all__ = ["BakestockClient"]
