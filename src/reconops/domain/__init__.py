"""Reconciliation reference data."""

from reconops.domain.catalog import (
    CatalogError,
    ReconInstance,
    ReferenceCatalog,
    ServerStats,
    get_catalog,
)

__all__ = [
    "CatalogError",
    "ReconInstance",
    "ReferenceCatalog",
    "ServerStats",
    "get_catalog",
]
