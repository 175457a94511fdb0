"""Flask application exposing the inventory catalog as a small JSON API."""
from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, Response, jsonify, request

from .config import Settings, get_settings
from .errors import DuplicateItemError, NotFoundError, StorageError
from .items import InventoryItem
from .manager import InventoryManager
from . import reports

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


class PayloadError(ValueError):
    """Request data failed validation."""


def create_app(
    storage_path: str | Path | None = None,
    settings: Optional[Settings] = None,
) -> Flask:
    settings = settings or get_settings()
    storage_path = Path(storage_path) if storage_path is not None else Path(settings.data_path)
    app = Flask(__name__)
    app.config["STOCKROOM_SETTINGS"] = settings
    app.config["TESTING"] = settings.environment == "test"

    manager = InventoryManager(storage_path=storage_path)
    app.extensions["stockroom"] = manager
    logger.info("Serving %s from %s", settings.app_name, storage_path)

    def _json_error(message: str, status: int = 400) -> Any:
        return jsonify({"error": message}), status

    def _thresholds() -> Tuple[int, int]:
        low_stock = _parse_int_value(request.args.get("threshold"))
        if low_stock is None or low_stock < 1:
            low_stock = settings.low_stock_threshold
        return low_stock, settings.expiring_within_days

    def _build_item_snapshot(item: InventoryItem) -> Dict[str, Any]:
        low_stock, expiring_within = _thresholds()
        payload = item.to_dict()
        payload["status"] = reports.classify(
            item,
            low_stock_threshold=low_stock,
            expiring_within_days=expiring_within,
        )
        return payload

    def _filtered_items() -> List[InventoryItem]:
        low_stock, _ = _thresholds()
        return reports.filter_items(
            manager.list_items(),
            search=request.args.get("q", ""),
            category=request.args.get("category"),
            low_stock_only=str(request.args.get("low_stock", "")).lower() in _TRUTHY,
            low_stock_threshold=low_stock,
        )

    @app.errorhandler(PayloadError)
    def handle_payload_error(exc: PayloadError) -> Any:
        return _json_error(str(exc), 400)

    @app.errorhandler(NotFoundError)
    def handle_not_found(exc: NotFoundError) -> Any:
        return _json_error(str(exc), 404)

    @app.errorhandler(DuplicateItemError)
    def handle_duplicate(exc: DuplicateItemError) -> Any:
        return _json_error(str(exc), 409)

    @app.errorhandler(StorageError)
    def handle_storage_error(exc: StorageError) -> Any:
        logger.error("Storage failure: %s", exc)
        return _json_error(f"{exc}; changes are not yet saved", 500)

    @app.get("/api/items")
    def list_items() -> Any:
        return jsonify([_build_item_snapshot(item) for item in _filtered_items()])

    @app.post("/api/items")
    def add_item() -> Any:
        fields = _parse_item_fields(_get_payload(request))
        item = manager.add(InventoryItem.create(**fields))
        logger.info("Added %s", item.name)
        return jsonify(_build_item_snapshot(item)), 201

    @app.get("/api/items/<string:item_id>")
    def get_item(item_id: str) -> Any:
        return jsonify(_build_item_snapshot(manager.get_item(item_id)))

    @app.put("/api/items/<string:item_id>")
    def update_item(item_id: str) -> Any:
        existing = manager.get_item(item_id)
        fields = _parse_item_fields(_get_payload(request), existing=existing)
        item = manager.update(existing.id, existing.update(**fields))
        logger.info("Updated %s", item.name)
        return jsonify(_build_item_snapshot(item))

    @app.delete("/api/items/<string:item_id>")
    def delete_item(item_id: str) -> Any:
        manager.remove(item_id)
        return "", 204

    @app.post("/api/items/<string:item_id>/restock")
    def restock_item(item_id: str) -> Any:
        payload = _get_payload(request)
        amount = _parse_int_value(payload.get("amount"))
        if amount is None or amount <= 0:
            return _json_error("Enter a positive whole number.")
        item = manager.restock(item_id, amount)
        logger.info("Restocked %s by +%d", item.name, amount)
        return jsonify(_build_item_snapshot(item))

    @app.get("/api/categories")
    def list_categories() -> Any:
        return jsonify(manager.list_categories())

    @app.get("/api/summary")
    def summary() -> Any:
        return jsonify(reports.summarize(_filtered_items()).to_dict())

    @app.get("/api/items/export")
    def export_inventory() -> Response:
        export_format = (request.args.get("format") or "csv").lower()
        items = _filtered_items()
        filename = _timestamped_filename("inventory-export")
        if export_format == "csv":
            response = Response(reports.export_csv(items), mimetype="text/csv")
            response.headers["Content-Disposition"] = f"attachment; filename={filename}.csv"
            return response
        if export_format == "xls":
            response = Response(reports.export_xls(items), mimetype="application/vnd.ms-excel")
            response.headers["Content-Disposition"] = f"attachment; filename={filename}.xls"
            return response
        return _json_error(f"Unsupported export format: {export_format}")

    return app


def _get_payload(req: Any) -> Dict[str, Any]:
    if req.is_json:
        return req.get_json(silent=True) or {}
    if req.form:
        return req.form.to_dict()
    return req.get_json(silent=True) or {}


def _parse_int_value(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _parse_price(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    try:
        return parsed.quantize(Decimal("0.01"))
    except InvalidOperation:
        return None


def _parse_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    text = str(value).strip()
    if text == "":
        return None
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise PayloadError("Expiration must be yyyy-MM-dd") from exc


def _parse_item_fields(
    payload: Dict[str, Any],
    *,
    existing: Optional[InventoryItem] = None,
) -> Dict[str, Any]:
    """Validate form or JSON input before it reaches the manager.

    Fields missing from ``payload`` fall back to ``existing`` when one is given.
    """

    def _pick(key: str, default: Any) -> Any:
        return payload[key] if key in payload else default

    name = str(_pick("name", existing.name if existing else "") or "").strip()
    if not name:
        raise PayloadError("Name is required")

    raw_quantity = _pick("quantity", existing.quantity if existing else 0)
    quantity = _parse_int_value(raw_quantity)
    if quantity is None:
        raise PayloadError("Invalid quantity")
    if quantity < 0:
        raise PayloadError("Quantity cannot be negative")

    raw_price = _pick("price", existing.price if existing else "0")
    price = _parse_price(raw_price)
    if price is None:
        raise PayloadError("Invalid price")
    if price < 0:
        raise PayloadError("Price cannot be negative")

    if "expiration_date" in payload:
        expiration = _parse_date(payload.get("expiration_date"))
    else:
        expiration = existing.expiration_date if existing else None

    return {
        "name": name,
        "category": str(_pick("category", existing.category if existing else "") or ""),
        "quantity": quantity,
        "unit": str(_pick("unit", existing.unit if existing else "") or ""),
        "price": price,
        "expiration_date": expiration,
    }


def _timestamped_filename(prefix: str) -> str:
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return f"{prefix}_{timestamp}"


__all__ = ["PayloadError", "create_app"]
