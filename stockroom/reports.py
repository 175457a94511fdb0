"""Read-only views over catalog snapshots: filtering, stock status and exports."""
from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from io import BytesIO, StringIO
from typing import Any, Dict, Iterable, List, Optional, Sequence

import xlwt

from .items import InventoryItem

DEFAULT_LOW_STOCK_THRESHOLD = 5
DEFAULT_EXPIRING_WITHIN_DAYS = 3

STATUS_EXPIRED = "expired"
STATUS_EXPIRING_SOON = "expiring_soon"
STATUS_LOW_STOCK = "low_stock"
STATUS_OK = "ok"

EXPORT_COLUMNS = ["Name", "Category", "Quantity", "Unit", "Price", "Expiration", "Last Updated"]


@dataclass(frozen=True)
class InventorySummary:
    item_count: int
    total_value: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"item_count": self.item_count, "total_value": f"{self.total_value:.2f}"}


def classify(
    item: InventoryItem,
    *,
    today: Optional[date] = None,
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    expiring_within_days: int = DEFAULT_EXPIRING_WITHIN_DAYS,
) -> str:
    """Return the display status of ``item``.

    Expired items win over expiring ones, which win over low stock.
    """

    today = today or date.today()
    threshold = max(1, low_stock_threshold)
    expiration = item.expiration_date
    if expiration is not None and expiration < today:
        return STATUS_EXPIRED
    if expiration is not None and expiration <= today + timedelta(days=expiring_within_days):
        return STATUS_EXPIRING_SOON
    if item.quantity <= threshold:
        return STATUS_LOW_STOCK
    return STATUS_OK


def filter_items(
    items: Iterable[InventoryItem],
    *,
    search: str = "",
    category: Optional[str] = None,
    low_stock_only: bool = False,
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
) -> List[InventoryItem]:
    needle = (search or "").strip().casefold()
    wanted_category = (category or "").strip().casefold()
    threshold = max(1, low_stock_threshold)
    matches: List[InventoryItem] = []
    for item in items:
        if needle and needle not in item.name.casefold() and needle not in item.category.casefold():
            continue
        if wanted_category and item.category.casefold() != wanted_category:
            continue
        if low_stock_only and item.quantity > threshold:
            continue
        matches.append(item)
    matches.sort(key=lambda item: item.name.casefold())
    return matches


def summarize(items: Iterable[InventoryItem]) -> InventorySummary:
    count = 0
    total = Decimal("0.00")
    for item in items:
        count += 1
        total += item.total_value
    return InventorySummary(item_count=count, total_value=total)


def _export_row(item: InventoryItem) -> List[Any]:
    return [
        item.name,
        item.category,
        item.quantity,
        item.unit,
        f"{item.price:.2f}",
        "" if item.expiration_date is None else item.expiration_date.isoformat(),
        item.updated_at.isoformat(timespec="seconds"),
    ]


def export_csv(items: Sequence[InventoryItem]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for item in items:
        writer.writerow(_export_row(item))
    return buffer.getvalue()


def export_xls(items: Sequence[InventoryItem], *, sheet_name: str = "Inventory") -> bytes:
    workbook = xlwt.Workbook(encoding="utf-8")
    sheet = workbook.add_sheet(sheet_name)
    header_style = xlwt.easyxf("font: bold on")
    for col_index, column in enumerate(EXPORT_COLUMNS):
        sheet.write(0, col_index, column, header_style)
    for row_index, item in enumerate(items, start=1):
        row = _export_row(item)
        row[4] = float(item.price)
        for col_index, value in enumerate(row):
            sheet.write(row_index, col_index, value)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


__all__ = [
    "DEFAULT_EXPIRING_WITHIN_DAYS",
    "DEFAULT_LOW_STOCK_THRESHOLD",
    "EXPORT_COLUMNS",
    "InventorySummary",
    "STATUS_EXPIRED",
    "STATUS_EXPIRING_SOON",
    "STATUS_LOW_STOCK",
    "STATUS_OK",
    "classify",
    "export_csv",
    "export_xls",
    "filter_items",
    "summarize",
]
