from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from stockroom.config import Settings
from stockroom.manager import InventoryManager


@pytest.fixture()
def storage_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "inventory-data.txt"


@pytest.fixture()
def empty_manager(storage_path: Path) -> InventoryManager:
    """Manager whose seeded default catalog has been cleared."""

    manager = InventoryManager(storage_path)
    for item in manager.list_items():
        manager.remove(item.id)
    assert manager.list_items() == ()
    return manager


@pytest.fixture()
def settings(storage_path: Path) -> Settings:
    return Settings(
        environment="test",
        data_path=storage_path,
        app_name="Test Stockroom",
        low_stock_threshold=5,
        expiring_within_days=3,
    )


@pytest.fixture()
def app(settings: Settings):
    from stockroom.app import create_app

    return create_app(settings=settings)


@pytest.fixture()
def client(app) -> Iterator:
    with app.test_client() as client:
        yield client
