"""Shared model base classes."""

from .base import CamelModel, StrictBaseModel

__all__ = [
    "CamelModel",
    "StrictBaseModel",
]
