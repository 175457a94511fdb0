"""Immutable catalog entries."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional

_CENT = Decimal("0.01")
_ZERO = Decimal("0.00")


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


def _sanitize(value: Optional[str]) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _coerce_quantity(value: Any) -> int:
    return max(0, int(value))


def _coerce_price(value: Any) -> Decimal:
    """Convert price inputs to a non-negative amount rounded to cents."""

    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid price: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid price: {value!r}")
    try:
        amount = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid price: {value!r}") from exc
    if amount < _ZERO:
        return _ZERO
    return amount


@dataclass(frozen=True)
class InventoryItem:
    """Represents a single grocery item in the catalog.

    Instances are never changed in place; :meth:`update` and :meth:`restock`
    return a new value that keeps the same ``id`` and refreshes ``updated_at``.
    """

    id: uuid.UUID
    name: str
    category: str
    quantity: int
    unit: str
    price: Decimal
    expiration_date: Optional[date] = None
    updated_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if not isinstance(self.id, uuid.UUID):
            object.__setattr__(self, "id", uuid.UUID(str(self.id)))
        object.__setattr__(self, "name", _sanitize(self.name))
        object.__setattr__(self, "category", _sanitize(self.category))
        object.__setattr__(self, "unit", _sanitize(self.unit))
        object.__setattr__(self, "quantity", _coerce_quantity(self.quantity))
        object.__setattr__(self, "price", _coerce_price(self.price))
        if self.updated_at is None:
            raise ValueError("updated_at is required")
        object.__setattr__(self, "updated_at", self.updated_at.replace(microsecond=0))

    @classmethod
    def create(
        cls,
        name: Optional[str],
        category: Optional[str],
        quantity: int,
        unit: Optional[str],
        price: Any,
        expiration_date: Optional[date] = None,
    ) -> "InventoryItem":
        return cls(
            id=uuid.uuid4(),
            name=name,
            category=category,
            quantity=quantity,
            unit=unit,
            price=price,
            expiration_date=expiration_date,
            updated_at=_now(),
        )

    def update(
        self,
        name: Optional[str],
        category: Optional[str],
        quantity: int,
        unit: Optional[str],
        price: Any,
        expiration_date: Optional[date] = None,
    ) -> "InventoryItem":
        return InventoryItem(
            id=self.id,
            name=name,
            category=category,
            quantity=quantity,
            unit=unit,
            price=price,
            expiration_date=expiration_date,
            updated_at=_now(),
        )

    def restock(self, amount: int) -> "InventoryItem":
        return replace(self, quantity=max(0, self.quantity + int(amount)), updated_at=_now())

    @property
    def total_value(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "category": self.category,
            "quantity": self.quantity,
            "unit": self.unit,
            "price": f"{self.price:.2f}",
            "expiration_date": (
                None if self.expiration_date is None else self.expiration_date.isoformat()
            ),
            "updated_at": self.updated_at.isoformat(timespec="seconds"),
        }


__all__ = ["InventoryItem"]
