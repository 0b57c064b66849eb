# Overview: Catalog import/export; maps spreadsheet and CSV rows onto product records.

from __future__ import annotations

import csv
import io
from typing import Any, Iterable

from flask import current_app
from openpyxl import Workbook, load_workbook

from ..extensions import db
from ..models import Product
from ..signals import notify, products_changed
from ..validation import ValidationError, amount_to_cents, cents_to_amount, row_int, row_text
from .products_service import bulk_upsert, create_product


class ImportFileError(ValueError):
    """Raised when an uploaded file cannot be read."""


DEFAULT_PRODUCT_NAME = "Producto Sin Nombre"

EXPORT_HEADERS = [
    "SKU",
    "Nombre",
    "Precio",
    "Stock Total",
    "Stock Tienda",
    "Stock Bodega",
    "Stock Exhibición",
]

# Accepted spellings per field; matching is case-insensitive
SKU_HEADERS = ("SKU",)
NAME_HEADERS = ("Nombre",)
PRICE_HEADERS = ("Precio",)
CSV_STOCK_HEADERS = ("Stock",)
STORE_HEADERS = ("Stock Tienda",)
WAREHOUSE_HEADERS = ("Stock Bodega",)
DISPLAY_HEADERS = ("Stock Exhibición", "Stock Exhibicion")
TOTAL_HEADERS = ("Stock Total",)

SPREADSHEET_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}


def _lower_keys(row: dict[str, Any]) -> dict[str, Any]:
    return {str(k).strip().lower(): v for k, v in row.items() if k is not None}


def _pick(row: dict[str, Any], headers: Iterable[str]) -> Any:
    """First non-blank value among header variants (row keys already lowercased)."""
    for header in headers:
        value = row.get(header.lower())
        if value is not None and str(value).strip() != "":
            return value
    return None


def normalize_csv_row(raw_row: dict[str, Any]) -> dict[str, Any] | None:
    """
    {SKU?, Nombre, Precio, Stock?} -> product record.
    Rows without Nombre or Precio are skipped (None).
    """
    row = _lower_keys(raw_row)
    name = row_text(_pick(row, NAME_HEADERS))
    price_cents = amount_to_cents(_pick(row, PRICE_HEADERS))
    if not name or price_cents is None:
        return None

    stock = row_int(_pick(row, CSV_STOCK_HEADERS))
    return {
        "sku": row_text(_pick(row, SKU_HEADERS)),
        "name": name,
        "price_cents": price_cents,
        "stock_details": {"store": stock, "warehouse": 0, "display": 0},
    }


def normalize_sheet_row(raw_row: dict[str, Any]) -> dict[str, Any] | None:
    """
    Spreadsheet row -> upsert record. Rows without SKU are skipped (None).

    Any location column present means a breakdown was supplied and the total
    is their sum. Only when all three are blank is "Stock Total" used.
    """
    row = _lower_keys(raw_row)
    sku = _pick(row, SKU_HEADERS)
    if sku is None:
        return None

    record = {
        "sku": row_text(sku),
        "name": row_text(_pick(row, NAME_HEADERS)) or DEFAULT_PRODUCT_NAME,
        "price_cents": amount_to_cents(_pick(row, PRICE_HEADERS)) or 0,
    }

    store = _pick(row, STORE_HEADERS)
    warehouse = _pick(row, WAREHOUSE_HEADERS)
    display = _pick(row, DISPLAY_HEADERS)
    if store is None and warehouse is None and display is None:
        record["stock"] = row_int(_pick(row, TOTAL_HEADERS))
        record["stock_details"] = None
    else:
        record["stock_details"] = {
            "store": row_int(store),
            "warehouse": row_int(warehouse),
            "display": row_int(display),
        }
    return record


def import_csv_rows(rows: Iterable[dict[str, Any]]) -> dict:
    """
    Insert new products from CSV rows in one transaction.
    Missing SKUs are generated; a duplicate SKU aborts the whole import.
    """
    created: list[Product] = []
    skipped = 0
    try:
        for raw in rows:
            record = normalize_csv_row(raw)
            if record is None:
                skipped += 1
                continue
            created.append(create_product(patch=record, commit=False))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("CSV import: %d created, %d skipped", len(created), skipped)
    if created:
        notify(products_changed, action="imported", ids=[p.id for p in created])
    return {
        "created": len(created),
        "skipped": skipped,
        "items": [p.to_dict() for p in created],
    }


def upsert_sheet_rows(rows: Iterable[dict[str, Any]]) -> dict:
    records = []
    skipped = 0
    for raw in rows:
        record = normalize_sheet_row(raw)
        if record is None:
            skipped += 1
            continue
        records.append(record)
    result = bulk_upsert(records)
    result["skipped"] = skipped
    return result


def export_rows() -> list[dict[str, Any]]:
    """
    One row per product in EXPORT_HEADERS shape.
    Products without a breakdown leave the location cells blank so that a
    re-import restores them without one.
    """
    rows = []
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    for p in products:
        details = p.stock_details
        rows.append({
            "SKU": p.sku,
            "Nombre": p.name,
            "Precio": cents_to_amount(p.price_cents),
            "Stock Total": p.stock,
            "Stock Tienda": details["store"] if details else None,
            "Stock Bodega": details["warehouse"] if details else None,
            "Stock Exhibición": details["display"] if details else None,
        })
    return rows


def read_rows(stream, filename: str) -> list[dict[str, Any]]:
    """Read a .csv or .xlsx upload into header-keyed dict rows."""
    ext = (filename or "").rsplit(".", 1)[-1].lower()

    if ext == "csv":
        data = stream.read()
        if isinstance(data, bytes):
            data = data.decode("utf-8-sig")
        reader = csv.DictReader(io.StringIO(data))
        return [row for row in reader]

    if ext in SPREADSHEET_EXTENSIONS:
        wb = load_workbook(stream, data_only=True)
        sheet = wb.active
        data = list(sheet.values)
        if not data:
            return []
        headers = [str(h) if h is not None else "" for h in data[0]]
        rows = []
        for values in data[1:]:
            if all(v is None or str(v).strip() == "" for v in values):
                continue
            rows.append({headers[i]: values[i] for i in range(min(len(headers), len(values)))})
        return rows

    raise ImportFileError(f"Unsupported file type: {ext or filename!r}")


def write_xlsx(rows: list[dict[str, Any]], *, headers: list[str], sheet_name: str) -> io.BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(headers)
    for row in rows:
        ws.append([row.get(h) for h in headers])
    out = io.BytesIO()
    wb.save(out)
    out.seek(0)
    return out


def write_csv(rows: list[dict[str, Any]], *, headers: list[str]) -> str:
    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=headers)
    writer.writeheader()
    for row in rows:
        writer.writerow({h: ("" if row.get(h) is None else row.get(h)) for h in headers})
    return out.getvalue()


def validate_upsert_payload(rows: Any) -> list[dict[str, Any]]:
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise ValidationError("rows must be a list of objects")
    return rows
