"""Book catalog: create, read, update and delete entries."""

from .manager import CatalogManager

__all__ = ["CatalogManager"]
