"""API endpoint handlers."""

from . import admin, entities, health, metrics, status, tokens

__all__ = [
    "admin",
    "entities",
    "health",
    "metrics",
    "status",
    "tokens",
]
