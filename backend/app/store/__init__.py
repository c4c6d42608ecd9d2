"""Embedded document store shared by all chat components."""

from .database import ChatDatabase

__all__ = ["ChatDatabase"]
