"""Authoritative in-memory catalog with write-through persistence."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional, Tuple

from .errors import DuplicateItemError, NotFoundError, StorageError
from .items import InventoryItem
from .storage import InventoryStorage

logger = logging.getLogger(__name__)


def _normalize_id(item_id: Any) -> Optional[uuid.UUID]:
    if isinstance(item_id, uuid.UUID):
        return item_id
    try:
        return uuid.UUID(str(item_id).strip())
    except (TypeError, ValueError):
        return None


def _sort_key(item: InventoryItem) -> str:
    return item.name.casefold()


@dataclass
class InventoryManager:
    """Owns the catalog and keeps the backing file in sync with it.

    Every public method runs under a single lock. Mutations re-sort the catalog
    by case-insensitive name and rewrite the file before returning, so once a
    call returns the new state is on disk. If the rewrite fails the change stays
    in memory and :class:`StorageError` propagates to the caller.
    """

    storage_path: Path
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)
    _items: List[InventoryItem] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.storage_path = Path(self.storage_path)
        self.storage = InventoryStorage(self.storage_path)
        with self._lock:
            self._items = list(self.storage.load())
            self._sort_locked()
        logger.debug("Loaded %d items from %s", len(self._items), self.storage_path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_items(self) -> Tuple[InventoryItem, ...]:
        with self._lock:
            return tuple(self._items)

    def list_categories(self) -> List[str]:
        with self._lock:
            seen: Dict[str, str] = {}
            for item in self._items:
                if not item.category.strip():
                    continue
                seen.setdefault(item.category.casefold(), item.category)
            return sorted(seen.values(), key=str.casefold)

    def find_by_id(self, item_id: Any) -> Optional[InventoryItem]:
        normalized = _normalize_id(item_id)
        if normalized is None:
            return None
        with self._lock:
            index = self._index_of_locked(normalized)
            return None if index is None else self._items[index]

    def get_item(self, item_id: Any) -> InventoryItem:
        item = self.find_by_id(item_id)
        if item is None:
            raise NotFoundError(item_id)
        return item

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add(self, item: InventoryItem) -> InventoryItem:
        with self._lock:
            if self._index_of_locked(item.id) is not None:
                raise DuplicateItemError(f"Item '{item.id}' already exists")
            self._items.append(item)
            logger.debug("Added item %s (%s)", item.id, item.name)
            self._persist_locked()
            return item

    def update(self, item_id: Any, item: InventoryItem) -> InventoryItem:
        normalized = _normalize_id(item_id)
        with self._lock:
            index = None if normalized is None else self._index_of_locked(normalized)
            if index is None:
                raise NotFoundError(item_id)
            if item.id != normalized:
                raise ValueError(f"Item id {item.id} does not match {normalized}")
            self._items[index] = item
            logger.debug("Updated item %s (%s)", item.id, item.name)
            self._persist_locked()
            return item

    def remove(self, item_id: Any) -> None:
        normalized = _normalize_id(item_id)
        with self._lock:
            if normalized is not None:
                before = len(self._items)
                self._items = [item for item in self._items if item.id != normalized]
                if len(self._items) != before:
                    logger.debug("Removed item %s", normalized)
            self._persist_locked()

    def restock(self, item_id: Any, delta: int) -> InventoryItem:
        normalized = _normalize_id(item_id)
        with self._lock:
            index = None if normalized is None else self._index_of_locked(normalized)
            if index is None:
                raise NotFoundError(item_id)
            restocked = self._items[index].restock(delta)
            self._items[index] = restocked
            logger.debug(
                "Restocked item %s by %+d to %d", restocked.id, delta, restocked.quantity
            )
            self._persist_locked()
            return restocked

    def persist(self) -> None:
        with self._lock:
            self._persist_locked()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _index_of_locked(self, item_id: uuid.UUID) -> Optional[int]:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return None

    def _sort_locked(self) -> None:
        self._items.sort(key=_sort_key)

    def _persist_locked(self) -> None:
        self._sort_locked()
        try:
            self.storage.save(self._items)
        except StorageError:
            logger.error(
                "Failed to persist %d items to %s; changes are held in memory only",
                len(self._items),
                self.storage_path,
            )
            raise


__all__ = ["InventoryManager"]
