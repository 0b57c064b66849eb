"""
Sales Service - cart checkout

The cart lives in the UI. Checkout hands over the final lines; commit_sale
writes the Sale with its item snapshots and takes each line's quantity out of
the catalog, all in one database transaction. Either both land or neither.

Lines whose SKU is no longer in the catalog are still sold: the Sale record
is the source of truth for what left the store, and the missing product is
just logged.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Sale, PAYMENT_METHODS
from ..signals import notify, products_changed, sales_changed
from ..validation import NotFoundError, ValidationError, to_int
from boutique_pos.time_utils import localnow
from .concurrency import begin_immediate, run_with_retry
from .products_service import decrement_for_sale


def _snapshot_line(raw, index: int) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError(f"Cart line {index} must be an object")

    sku = str(raw.get("sku") or "").strip()
    if not sku:
        raise ValidationError(f"Cart line {index}: sku is required")

    name = str(raw.get("name") or "").strip()
    if not name:
        raise ValidationError(f"Cart line {index}: name is required")

    if raw.get("price_cents") is None:
        raise ValidationError(f"Cart line {index}: price_cents is required")
    price_cents = to_int(raw["price_cents"], f"items[{index}].price_cents")
    if price_cents < 0:
        raise ValidationError(f"Cart line {index}: price_cents must be >= 0")

    quantity = to_int(raw.get("quantity", 1), f"items[{index}].quantity")
    if quantity < 1:
        raise ValidationError(f"Cart line {index}: quantity must be >= 1")

    return {"sku": sku, "name": name, "price_cents": price_cents, "quantity": quantity}


def cart_total_cents(items: list[dict]) -> int:
    return sum(item["price_cents"] * item["quantity"] for item in items)


def commit_sale(
    cart: list[dict],
    payment_method: str,
    *,
    amount_paid_cents: int | None = None,
) -> Sale:
    """
    Commit a checkout.

    Args:
        cart: ordered lines {sku, name, price_cents, quantity}; name/price are
            the values shown at checkout and are stored as-is
        payment_method: cash | card | transfer | rappi
        amount_paid_cents: cash tendered (cash only, optional); must cover the total

    Returns:
        The committed Sale with its id, ready for the receipt.

    Raises:
        ValidationError: empty cart, malformed line, unknown method, short cash
    """
    if not isinstance(cart, list) or not cart:
        raise ValidationError("Cart is empty")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    items = [_snapshot_line(raw, i) for i, raw in enumerate(cart)]
    total_cents = cart_total_cents(items)

    if amount_paid_cents is not None:
        if payment_method != "cash":
            raise ValidationError("amount_paid_cents only applies to cash payments")
        if amount_paid_cents < total_cents:
            raise ValidationError("Amount paid is less than the sale total")

    def _op():
        begin_immediate()

        sale = Sale(
            date=localnow(),
            items=items,
            total_cents=total_cents,
            payment_method=payment_method,
        )
        db.session.add(sale)
        db.session.flush()

        touched = []
        for item in items:
            product = decrement_for_sale(item["sku"], item["quantity"])
            if product is not None:
                touched.append(product.id)

        db.session.commit()
        return sale, touched

    sale, touched = run_with_retry(_op, label="Sale commit")

    current_app.logger.info(
        "Sale %s committed: total_cents=%d method=%s lines=%d",
        sale.id, sale.total_cents, sale.payment_method, len(items),
    )
    notify(sales_changed, action="committed", ids=[sale.id])
    if touched:
        notify(products_changed, action="sold", ids=touched)
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def receipt_payload(sale: Sale, amount_paid_cents: int | None = None) -> dict:
    """Finalized sale for the receipt renderer, with change due for cash."""
    payload = {
        "sale": sale.to_dict(),
        "lines": [
            {**item, "line_total_cents": item["price_cents"] * item["quantity"]}
            for item in sale.items
        ],
        "total_cents": sale.total_cents,
        "amount_paid_cents": None,
        "change_due_cents": None,
    }
    if amount_paid_cents is not None and sale.payment_method == "cash":
        payload["amount_paid_cents"] = amount_paid_cents
        payload["change_due_cents"] = amount_paid_cents - sale.total_cents
    return payload
