"""Raw data accessors for local data files."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable


@runtime_checkable
class DataProvider(Protocol):
    """Opens a data file by key; ``None`` when it cannot be served."""

    def fetch(self, key: str) -> BinaryIO | None: ...


class LocalDataProvider:
    """Serves files straight from the local file system."""

    def fetch(self, key: str) -> BinaryIO | None:
        path = Path(key)
        if not path.is_file():
            return None
        return path.open("rb")


__all__ = ["DataProvider", "LocalDataProvider"]
