"""Flat-file persistence for the inventory catalog.

Each item is stored on its own line as eight ``|``-separated fields::

    id|name|category|quantity|unit|price|expiration|updated_at

Free-text fields (name, category and unit) are base64 encoded so they may
contain the delimiter, newlines or any other character. The file always starts
with a ``# inventory-data v1`` header and is rewritten in full on every save.
"""
from __future__ import annotations

import base64
import binascii
import calendar
import logging
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import RecordParseError, StorageError
from .items import InventoryItem

logger = logging.getLogger(__name__)

HEADER = "# inventory-data v1"
FIELD_SEPARATOR = "|"
FIELD_COUNT = 8
NO_EXPIRATION = "-"


def encode_text(value: Optional[str]) -> str:
    safe = "" if value is None else value
    return base64.b64encode(safe.encode("utf-8")).decode("ascii")


def decode_text(encoded: Optional[str]) -> str:
    if encoded is None or encoded.strip() == "":
        return ""
    try:
        raw = base64.b64decode(encoded, validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise RecordParseError(f"Invalid text field: {encoded!r}") from exc


def format_line(item: InventoryItem) -> str:
    expiration = (
        NO_EXPIRATION if item.expiration_date is None else item.expiration_date.isoformat()
    )
    return FIELD_SEPARATOR.join(
        [
            str(item.id),
            encode_text(item.name),
            encode_text(item.category),
            str(item.quantity),
            encode_text(item.unit),
            f"{item.price:.2f}",
            expiration,
            item.updated_at.isoformat(timespec="seconds"),
        ]
    )


def parse_line(line: str) -> InventoryItem:
    """Decode a single persisted line.

    Raises :class:`RecordParseError` when the line has too few fields or any
    field cannot be parsed. Fields past the eighth are ignored.
    """

    parts = line.split(FIELD_SEPARATOR)
    if len(parts) < FIELD_COUNT:
        raise RecordParseError(
            f"Expected {FIELD_COUNT} fields, found {len(parts)}"
        )
    (
        raw_id,
        raw_name,
        raw_category,
        raw_quantity,
        raw_unit,
        raw_price,
        raw_expiration,
        raw_updated_at,
    ) = parts[:FIELD_COUNT]
    try:
        item_id = uuid.UUID(raw_id.strip())
        quantity = int(raw_quantity)
        price = Decimal(raw_price.strip())
        if not price.is_finite():
            raise ValueError(f"Invalid price: {raw_price!r}")
        expiration_text = raw_expiration.strip()
        if expiration_text in {"", NO_EXPIRATION}:
            expiration: Optional[date] = None
        else:
            expiration = date.fromisoformat(expiration_text)
        updated_at = datetime.fromisoformat(raw_updated_at.strip())
        if updated_at.tzinfo is not None:
            raise ValueError("updated_at must be a local timestamp")
        return InventoryItem(
            id=item_id,
            name=decode_text(raw_name),
            category=decode_text(raw_category),
            quantity=quantity,
            unit=decode_text(raw_unit),
            price=price,
            expiration_date=expiration,
            updated_at=updated_at,
        )
    except RecordParseError:
        raise
    except (ValueError, InvalidOperation) as exc:
        raise RecordParseError(str(exc)) from exc


def _add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def default_items(today: Optional[date] = None) -> List[InventoryItem]:
    """Sample grocery catalog used to seed an empty store."""

    today = today or date.today()
    return [
        InventoryItem.create("Gala Apples", "Produce", 40, "lbs", "1.69", today + timedelta(days=10)),
        InventoryItem.create("Organic Spinach", "Produce", 18, "bags", "3.99", today + timedelta(days=5)),
        InventoryItem.create("Whole Milk", "Dairy", 25, "gallons", "4.49", today + timedelta(days=7)),
        InventoryItem.create("Brown Eggs", "Dairy", 32, "dozens", "2.59", today + timedelta(days=14)),
        InventoryItem.create("Sourdough Bread", "Bakery", 12, "loaves", "5.25", today + timedelta(days=2)),
        InventoryItem.create("Ground Coffee", "Pantry", 20, "bags", "11.99", _add_months(today, 3)),
    ]


class InventoryStorage:
    """Loads and saves the catalog using the pipe-delimited line format."""

    def __init__(self, file_path: str | Path) -> None:
        self.file_path = Path(file_path)

    def load(self) -> List[InventoryItem]:
        try:
            self._ensure_file_exists()
            lines = self.file_path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise StorageError(f"Unable to load inventory data from {self.file_path}") from exc
        items: List[InventoryItem] = []
        for line_number, line in enumerate(lines, start=1):
            if not line.strip() or line.startswith("#"):
                continue
            try:
                items.append(parse_line(line))
            except RecordParseError as exc:
                logger.warning(
                    "Skipping malformed line %d in %s: %s", line_number, self.file_path, exc
                )
        if not items:
            logger.info("No inventory records in %s; seeding default catalog", self.file_path)
            items.extend(default_items())
            self.save(items)
        return items

    def save(self, items: Iterable[InventoryItem]) -> None:
        lines = [HEADER]
        lines.extend(format_line(item) for item in items)
        content = "\n".join(lines) + "\n"
        temp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        try:
            self._ensure_file_exists()
            temp_path.write_text(content, encoding="utf-8")
            temp_path.replace(self.file_path)
        except OSError as exc:
            temp_path.unlink(missing_ok=True)
            raise StorageError(f"Unable to save inventory data to {self.file_path}") from exc
        logger.debug("Saved %d inventory records to %s", len(lines) - 1, self.file_path)

    def _ensure_file_exists(self) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.file_path.exists():
            self.file_path.touch()


__all__ = [
    "HEADER",
    "InventoryStorage",
    "decode_text",
    "default_items",
    "encode_text",
    "format_line",
    "parse_line",
]
