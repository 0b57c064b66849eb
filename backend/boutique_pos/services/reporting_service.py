# Overview: Service-layer operations for reporting; sales windows and payment-method totals.

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from sqlalchemy import func

from boutique_pos.extensions import db
from boutique_pos.models import Sale, PAYMENT_METHODS
from boutique_pos.time_utils import (
    end_of_day,
    exclusive_end,
    last_day_of_month,
    parse_day,
    start_of_day,
    to_local_iso,
)
from boutique_pos.validation import cents_to_amount

GRANULARITIES = ("day", "month", "year")

PAYMENT_LABELS = {
    "cash": "Efectivo",
    "card": "Tarjeta",
    "transfer": "Transferencia",
    "rappi": "Rappi",
}

SALES_EXPORT_HEADERS = [
    "ID Venta",
    "Fecha",
    "Hora",
    "Producto",
    "SKU",
    "Cantidad",
    "Precio Unitario",
    "Total Línea",
    "Método de Pago",
]


class ReportError(Exception):
    """Raised when report parameters cannot be interpreted."""
    pass


def _anchor_parts(granularity: str, anchor) -> tuple[int, int, int]:
    if isinstance(anchor, (date, datetime)):
        d = anchor.date() if isinstance(anchor, datetime) else anchor
        return d.year, d.month, d.day
    if isinstance(anchor, int) and granularity == "year":
        return anchor, 1, 1

    text = str(anchor or "").strip()
    try:
        if granularity == "day":
            d = parse_day(text)
            return d.year, d.month, d.day
        if granularity == "month":
            parsed = datetime.strptime(text[:7], "%Y-%m")
            return parsed.year, parsed.month, 1
        parsed = datetime.strptime(text[:4], "%Y")
        return parsed.year, 1, 1
    except ValueError:
        raise ReportError(f"Invalid {granularity} anchor: {anchor!r}")


def period_bounds(granularity: str, anchor) -> tuple[datetime, datetime]:
    """
    Inclusive [start, end] in local wall-clock time.

    - day:   00:00:00.000 .. 23:59:59.999 of the anchor date
    - month: first day 00:00:00.000 .. last day 23:59:59.999
    - year:  Jan 1 00:00:00.000 .. Dec 31 23:59:59.999

    anchor may be a date, or a string: "YYYY-MM-DD" (day), "YYYY-MM" (month),
    "YYYY" (year). Longer strings are truncated for month/year.
    """
    if granularity not in GRANULARITIES:
        raise ReportError("granularity must be day, month, or year")

    year, month, day = _anchor_parts(granularity, anchor)

    if granularity == "day":
        d = date(year, month, day)
        return start_of_day(d), end_of_day(d)
    if granularity == "month":
        return start_of_day(date(year, month, 1)), end_of_day(last_day_of_month(year, month))
    return start_of_day(date(year, 1, 1)), end_of_day(date(year, 12, 31))


def sales_between(start: datetime, end: datetime) -> list[Sale]:
    """Sales with start <= date <= end, end inclusive to the millisecond."""
    return (
        db.session.query(Sale)
        .filter(Sale.date >= start, Sale.date < exclusive_end(end))
        .order_by(Sale.date.asc(), Sale.id.asc())
        .all()
    )


def sales_in_window(granularity: str, anchor) -> list[Sale]:
    start, end = period_bounds(granularity, anchor)
    return sales_between(start, end)


def cash_sales_total_cents(day) -> int:
    """Sum of cash-method totals for one calendar day (SQL aggregate)."""
    start, end = period_bounds("day", day)
    total = (
        db.session.query(func.coalesce(func.sum(Sale.total_cents), 0))
        .filter(
            Sale.payment_method == "cash",
            Sale.date >= start,
            Sale.date < exclusive_end(end),
        )
        .scalar()
    )
    return int(total or 0)


def summarize(sales: Iterable[Sale]) -> dict:
    """
    Per-payment-method totals, recomputed from the raw sales every time.
    All methods are present, zero when unused.
    """
    by_method = {method: 0 for method in PAYMENT_METHODS}
    counts = {method: 0 for method in PAYMENT_METHODS}
    total = 0
    sale_count = 0
    for sale in sales:
        by_method[sale.payment_method] = by_method.get(sale.payment_method, 0) + sale.total_cents
        counts[sale.payment_method] = counts.get(sale.payment_method, 0) + 1
        total += sale.total_cents
        sale_count += 1
    return {
        "by_method_cents": by_method,
        "count_by_method": counts,
        "total_cents": total,
        "sales_count": sale_count,
    }


def sales_report(*, granularity: str, anchor) -> dict:
    start, end = period_bounds(granularity, anchor)
    sales = sales_between(start, end)
    return {
        "granularity": granularity,
        "anchor": anchor.isoformat() if isinstance(anchor, (date, datetime)) else str(anchor),
        "start": to_local_iso(start),
        "end": to_local_iso(end),
        "summary": summarize(sales),
        "sales": [s.to_dict() for s in sales],
    }


def sales_export_rows(sales: Iterable[Sale]) -> list[dict]:
    """One row per line item, Spanish headers, decimal amounts."""
    rows = []
    for sale in sales:
        for item in sale.items or []:
            price_cents = int(item["price_cents"])
            quantity = int(item["quantity"])
            rows.append({
                "ID Venta": sale.id,
                "Fecha": sale.date.strftime("%d/%m/%Y"),
                "Hora": sale.date.strftime("%H:%M:%S"),
                "Producto": item["name"],
                "SKU": item["sku"],
                "Cantidad": quantity,
                "Precio Unitario": cents_to_amount(price_cents),
                "Total Línea": cents_to_amount(price_cents * quantity),
                "Método de Pago": PAYMENT_LABELS.get(sale.payment_method, sale.payment_method),
            })
    return rows


def export_filename(granularity: str, anchor) -> str:
    if isinstance(anchor, (date, datetime)):
        anchor = anchor.isoformat()[: {"day": 10, "month": 7, "year": 4}[granularity]]
    return f"ventas_{granularity}_{anchor}.xlsx"
