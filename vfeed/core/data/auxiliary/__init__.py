"""Auxiliary map file and factor file data."""

from vfeed.core.data.auxiliary.providers import (
    DuckDBFactorFileProvider,
    DuckDBMapFileProvider,
    FactorFileProvider,
    MapFileProvider,
    MapFileResolver,
    StaticFactorFileProvider,
    StaticMapFileProvider,
)

__all__ = [
    "MapFileResolver",
    "MapFileProvider",
    "FactorFileProvider",
    "StaticMapFileProvider",
    "StaticFactorFileProvider",
    "DuckDBMapFileProvider",
    "DuckDBFactorFileProvider",
]
