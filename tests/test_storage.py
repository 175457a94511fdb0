from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
import uuid

import pytest

from stockroom.errors import RecordParseError, StorageError
from stockroom.items import InventoryItem
from stockroom.storage import (
    HEADER,
    InventoryStorage,
    decode_text,
    default_items,
    encode_text,
    format_line,
    parse_line,
)


def _item(name: str, **overrides) -> InventoryItem:
    values = dict(
        id=uuid.uuid4(),
        name=name,
        category="Produce",
        quantity=10,
        unit="lbs",
        price=Decimal("1.25"),
        expiration_date=None,
        updated_at=datetime(2024, 2, 3, 4, 5, 6),
    )
    values.update(overrides)
    return InventoryItem(**values)


@pytest.mark.parametrize(
    "text",
    ["", "plain", "pipe | inside", "line\nbreak", "Crème brûlée", "苹果|梨", "tab\tand\r\n"],
)
def test_text_codec_is_symmetric(text: str) -> None:
    encoded = encode_text(text)
    assert "|" not in encoded
    assert "\n" not in encoded
    assert decode_text(encoded) == text


def test_decode_rejects_garbage() -> None:
    with pytest.raises(RecordParseError):
        decode_text("not base64!")


def test_format_line_layout() -> None:
    item_id = uuid.UUID("12345678-1234-5678-1234-567812345678")
    item = _item(
        "Whole Milk",
        id=item_id,
        category="Dairy",
        quantity=25,
        unit="gallons",
        price=Decimal("4.5"),
        expiration_date=date(2024, 3, 9),
    )

    line = format_line(item)

    assert line == (
        "12345678-1234-5678-1234-567812345678|V2hvbGUgTWlsaw==|RGFpcnk=|25|"
        "Z2FsbG9ucw==|4.50|2024-03-09|2024-02-03T04:05:06"
    )
    assert parse_line(line) == item


def test_format_line_without_expiration() -> None:
    line = format_line(_item("Coffee"))
    assert line.split("|")[6] == "-"
    assert parse_line(line).expiration_date is None


def test_parse_line_ignores_extra_fields_and_blank_expiration() -> None:
    item = _item("Coffee")
    fields = format_line(item).split("|")
    fields[6] = ""
    parsed = parse_line("|".join(fields + ["trailing"]))
    assert parsed == item


@pytest.mark.parametrize(
    "line",
    [
        "bad-id|QQ==|QQ==|1|QQ==|1.00|-",
        "not-a-uuid|QQ==|QQ==|1|QQ==|1.00|-|2024-01-01T00:00:00",
        f"{uuid.uuid4()}|QQ==|QQ==|many|QQ==|1.00|-|2024-01-01T00:00:00",
        f"{uuid.uuid4()}|QQ==|QQ==|1|QQ==|cheap|-|2024-01-01T00:00:00",
        f"{uuid.uuid4()}|QQ==|QQ==|1|QQ==|1e40|-|2024-01-01T00:00:00",
        f"{uuid.uuid4()}|QQ==|QQ==|1|QQ==|1.00|2024-13-45|2024-01-01T00:00:00",
        f"{uuid.uuid4()}|QQ==|QQ==|1|QQ==|1.00|-|yesterday",
        f"{uuid.uuid4()}|@@@|QQ==|1|QQ==|1.00|-|2024-01-01T00:00:00",
    ],
)
def test_parse_line_rejects_malformed_rows(line: str) -> None:
    with pytest.raises(RecordParseError):
        parse_line(line)


def test_round_trip_preserves_items(tmp_path: Path) -> None:
    storage = InventoryStorage(tmp_path / "inventory.txt")
    items = [
        _item("banana | split", category="Fro|zen\nDesserts", unit="pint"),
        _item("Äpfel", category="Obst", price=Decimal("0.99"), expiration_date=date(2025, 1, 2)),
        _item("apricots", quantity=0, price=Decimal("0")),
    ]

    storage.save(items)
    loaded = storage.load()

    assert loaded == items


def test_save_writes_header_and_replaces_contents(tmp_path: Path) -> None:
    path = tmp_path / "inventory.txt"
    storage = InventoryStorage(path)
    storage.save([_item("One"), _item("Two")])
    storage.save([_item("Three")])

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == HEADER
    assert len(lines) == 2
    assert decode_text(lines[1].split("|")[1]) == "Three"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["inventory.txt"]


def test_load_creates_missing_directories(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "deeper" / "inventory.txt"
    storage = InventoryStorage(path)

    items = storage.load()

    assert path.exists()
    assert len(items) == len(default_items())


def test_load_seeds_default_catalog_once(tmp_path: Path) -> None:
    path = tmp_path / "inventory.txt"
    path.write_text("# inventory-data v1\n\n# nothing here\n", encoding="utf-8")
    storage = InventoryStorage(path)

    first = storage.load()
    second = storage.load()

    names = {item.name for item in first}
    assert "Gala Apples" in names
    assert {item.category for item in first} >= {"Produce", "Dairy", "Bakery", "Pantry"}
    assert second == first
    assert path.read_text(encoding="utf-8").startswith(HEADER)


def test_default_items_expire_relative_to_today() -> None:
    today = date(2024, 11, 30)
    seeded = {item.name: item for item in default_items(today)}
    assert seeded["Gala Apples"].expiration_date == date(2024, 12, 10)
    assert seeded["Ground Coffee"].expiration_date == date(2025, 2, 28)


def test_load_drops_corrupt_rows(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "inventory.txt"
    good = [_item("Milk"), _item("Eggs")]
    rows = [
        HEADER,
        format_line(good[0]),
        "bad-id|QQ==|QQ==|1|QQ==|1.00|-",
        f"{uuid.uuid4()}|QQ==|QQ==|lots|QQ==|1.00|-|2024-01-01T00:00:00",
        "",
        f"{uuid.uuid4()}|QQ==|QQ==|1|QQ==|1.00|31/12/2024|2024-01-01T00:00:00",
        f"{uuid.uuid4()}|QQ==|QQ==|1|QQ==|1e40|-|2024-01-01T00:00:00",
        format_line(good[1]),
    ]
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")
    storage = InventoryStorage(path)

    with caplog.at_level("WARNING", logger="stockroom.storage"):
        loaded = storage.load()

    assert loaded == good
    assert len([r for r in caplog.records if "Skipping malformed line" in r.getMessage()]) == 4

    storage.save(loaded)
    data_lines = [
        line for line in path.read_text(encoding="utf-8").splitlines() if not line.startswith("#")
    ]
    assert data_lines == [format_line(item) for item in good]


def test_load_failure_raises_storage_error(tmp_path: Path) -> None:
    directory = tmp_path / "inventory.txt"
    directory.mkdir()
    with pytest.raises(StorageError):
        InventoryStorage(directory).load()


def test_save_failure_raises_storage_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    storage = InventoryStorage(blocker / "inventory.txt")
    with pytest.raises(StorageError) as excinfo:
        storage.save([_item("Milk")])
    assert isinstance(excinfo.value.__cause__, OSError)


def test_failed_replace_removes_temp_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "inventory.txt"
    storage = InventoryStorage(path)
    storage.save([_item("Milk")])
    before = path.read_text(encoding="utf-8")

    def broken_replace(self, target):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "replace", broken_replace)
    with pytest.raises(StorageError):
        storage.save([_item("Eggs")])

    assert sorted(p.name for p in tmp_path.iterdir()) == ["inventory.txt"]
    assert path.read_text(encoding="utf-8") == before
