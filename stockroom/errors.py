"""Exception types raised by the stockroom core."""
from __future__ import annotations


class StockroomError(Exception):
    """Base class for stockroom failures."""


class RecordParseError(StockroomError, ValueError):
    """A persisted line could not be decoded into an item."""


class NotFoundError(StockroomError, KeyError):
    """No item with the requested id exists in the catalog."""

    def __init__(self, item_id: object) -> None:
        super().__init__(f"Item '{item_id}' not found")
        self.item_id = item_id

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0])


class DuplicateItemError(StockroomError, ValueError):
    """An item with the same id is already in the catalog."""


class StorageError(StockroomError, OSError):
    """Reading or writing the backing file failed."""


__all__ = [
    "StockroomError",
    "RecordParseError",
    "NotFoundError",
    "DuplicateItemError",
    "StorageError",
]
