"""Infrastructure layer implementations."""

from src.infrastructure import client, storage

__all__ = ["storage", "client"]
