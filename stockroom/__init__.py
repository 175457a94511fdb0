"""Stockroom: a small grocery catalog with a durable flat-file store."""
from __future__ import annotations

from .errors import (
    DuplicateItemError,
    NotFoundError,
    RecordParseError,
    StockroomError,
    StorageError,
)
from .items import InventoryItem
from .manager import InventoryManager
from .storage import InventoryStorage

__all__ = [
    "create_app",
    "DuplicateItemError",
    "InventoryItem",
    "InventoryManager",
    "InventoryStorage",
    "NotFoundError",
    "RecordParseError",
    "StockroomError",
    "StorageError",
]


def create_app(*args, **kwargs):
    from .app import create_app as _create_app

    return _create_app(*args, **kwargs)
