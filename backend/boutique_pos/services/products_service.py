# backend/boutique_pos/services/products_service.py
"""
Inventory Ledger: catalog records and their stock counts.

STOCK RULES:
- A supplied stock_details breakdown always wins: stock is recomputed as
  store + warehouse + display, whatever total was sent alongside it.
- A total-only edit on a product that has a breakdown moves the difference
  into the 'store' bucket (warehouse and display are left as counted).
- Sale decrements always come out of the 'store' bucket and are not clamped
  at zero; a negative count is how an oversell shows up.
"""
from __future__ import annotations

import uuid

from flask import current_app
from sqlalchemy import func, or_

from ..extensions import db
from ..models import Product
from ..signals import notify, products_changed
from ..validation import ConflictError, NotFoundError, ValidationError, coerce_stock_details

PRODUCT_MUTABLE_FIELDS = {"sku", "name", "price_cents"}

SKU_GENERATION_ATTEMPTS = 10


def generate_sku(length: int | None = None) -> str:
    """Short uppercase alphanumeric code not yet used by any product."""
    if length is None:
        length = int(current_app.config.get("SKU_LENGTH", 8))
    for _ in range(SKU_GENERATION_ATTEMPTS):
        candidate = uuid.uuid4().hex[:length].upper()
        if find_by_code(candidate) is None:
            return candidate
    raise ConflictError("Could not generate a unique SKU")


def find_by_code(code: str) -> Product | None:
    """Exact SKU match; None when nothing matches."""
    if code is None:
        return None
    return db.session.query(Product).filter(Product.sku == code).first()


def get_product(product_id: int) -> Product:
    p = db.session.get(Product, product_id)
    if p is None:
        raise NotFoundError("Product not found")
    return p


def list_products(search: str | None = None) -> list[Product]:
    """
    Catalog listing ordered by name.

    search matches a case-insensitive substring of the name or a substring
    of the SKU.
    """
    query = db.session.query(Product)
    if search:
        term = search.strip()
        if term:
            query = query.filter(
                or_(
                    func.lower(Product.name).contains(term.lower(), autoescape=True),
                    Product.sku.contains(term, autoescape=True),
                )
            )
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def restock_list(threshold: int | None = None) -> list[Product]:
    """Products with stock below threshold, most urgent first."""
    if threshold is None:
        threshold = int(current_app.config.get("LOW_STOCK_THRESHOLD", 3))
    return (
        db.session.query(Product)
        .filter(Product.stock < threshold)
        .order_by(Product.stock.asc(), Product.name.asc())
        .all()
    )


def _require_name_and_price(name, price_cents) -> None:
    if name is None or str(name).strip() == "":
        raise ValidationError("name is required")
    if price_cents is None:
        raise ValidationError("price_cents is required")
    if price_cents < 0:
        raise ValidationError("price_cents must be >= 0")


def _ensure_sku_free(sku: str, product_id: int | None = None) -> None:
    query = db.session.query(Product).filter(Product.sku == sku)
    if product_id is not None:
        query = query.filter(Product.id != product_id)
    if query.first() is not None:
        raise ConflictError(f"SKU already exists: {sku}")


def _apply_stock(p: Product, patch: dict, *, allow_negative: bool = False) -> None:
    if "stock_details" in patch:
        details = coerce_stock_details(patch["stock_details"], allow_negative=allow_negative)
        if details is not None:
            p.set_stock_details(details)
            return
        p.clear_stock_details()

    if "stock" not in patch or patch["stock"] is None:
        return

    stock = int(patch["stock"])
    if p.has_breakdown:
        details = p.effective_stock_details()
        details["store"] += stock - p.stock
        if details["store"] < 0:
            raise ValidationError(
                "stock is below warehouse + display; edit stock_details instead"
            )
        p.set_stock_details(details)
    else:
        p.stock = stock


def create_product(*, patch: dict, commit: bool = True) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ValidationError: name or price_cents missing
        ConflictError: SKU already exists
    """
    _require_name_and_price(patch.get("name"), patch.get("price_cents"))

    sku = (patch.get("sku") or "").strip()
    if sku:
        _ensure_sku_free(sku)
    else:
        sku = generate_sku()

    p = Product(
        sku=sku,
        name=str(patch["name"]).strip(),
        price_cents=patch["price_cents"],
        stock=0,
    )
    _apply_stock(p, {k: v for k, v in patch.items() if k in ("stock", "stock_details")})

    db.session.add(p)
    db.session.flush()

    if commit:
        db.session.commit()
        notify(products_changed, action="created", ids=[p.id])
    return p


def update_product(*, product_id: int, patch: dict) -> Product:
    """
    Update a product.

    Raises:
        NotFoundError: unknown id
        ValidationError: name blanked or price removed
        ConflictError: new SKU already exists
    """
    p = get_product(product_id)

    if "sku" in patch:
        new_sku = (patch["sku"] or "").strip()
        if not new_sku:
            raise ValidationError("sku cannot be blank")
        if new_sku != p.sku:
            _ensure_sku_free(new_sku, product_id=p.id)
        patch = {**patch, "sku": new_sku}

    _require_name_and_price(patch.get("name", p.name), patch.get("price_cents", p.price_cents))

    for k, v in patch.items():
        if k in PRODUCT_MUTABLE_FIELDS:
            setattr(p, k, v.strip() if isinstance(v, str) else v)
    _apply_stock(p, patch)

    db.session.commit()
    notify(products_changed, action="updated", ids=[p.id])
    return p


def delete_product(*, product_id: int) -> bool:
    """
    Hard delete. Historical sales keep their own item snapshots, so nothing
    cascades.

    Returns:
        True if deleted, False if not found
    """
    p = db.session.get(Product, product_id)
    if not p:
        return False

    db.session.delete(p)
    db.session.commit()
    notify(products_changed, action="deleted", ids=[product_id])
    return True


def bulk_upsert(records: list[dict]) -> dict:
    """
    Upsert records keyed by sku in one transaction.

    Existing SKU: id is preserved and every other field is replaced (no merge;
    a record without a breakdown clears the stored one). New SKU: inserted.
    A SKU repeated within the batch is one product; its last record wins.

    Negative location counts are accepted so an oversold catalog can be
    exported and re-imported unchanged.
    """
    created: list[Product] = []
    updated: list[Product] = []
    batch: dict[str, Product] = {}

    try:
        for record in records:
            sku = (record.get("sku") or "").strip()
            if not sku:
                raise ValidationError("sku is required for bulk upsert")
            _require_name_and_price(record.get("name"), record.get("price_cents"))

            p = batch.get(sku)
            if p is None:
                p = find_by_code(sku)
                if p is None:
                    p = Product(sku=sku)
                    db.session.add(p)
                    created.append(p)
                else:
                    updated.append(p)
                batch[sku] = p

            p.name = str(record["name"]).strip()
            p.price_cents = record["price_cents"]
            p.clear_stock_details()
            p.stock = 0
            _apply_stock(p, {
                "stock": record.get("stock", 0),
                "stock_details": record.get("stock_details"),
            }, allow_negative=True)
            db.session.flush()

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    ids = [p.id for p in created + updated]
    current_app.logger.info("Bulk upsert: %d created, %d updated", len(created), len(updated))
    notify(products_changed, action="upserted", ids=ids)
    return {
        "created": len(created),
        "updated": len(updated),
        "items": [p.to_dict() for p in created + updated],
    }


def decrement_for_sale(sku: str, quantity: int) -> Product | None:
    """
    Take quantity out of the product's 'store' bucket (and total).

    A product without a breakdown gets one synthesized from its total first.
    Does not commit: the sale commit owns the transaction.

    Returns:
        The product, or None when the SKU is no longer in the catalog.
    """
    p = find_by_code(sku)
    if p is None:
        current_app.logger.warning("Sale decrement skipped: sku=%s not in catalog", sku)
        return None

    details = p.effective_stock_details()
    details["store"] -= quantity
    p.set_stock_details(details)

    if p.stock < 0:
        current_app.logger.warning("Oversell: sku=%s stock=%d", p.sku, p.stock)
    return p


def label_payloads(product_ids: list[int] | None = None) -> list[dict]:
    """Finalized data for the label renderer (sku doubles as the barcode value)."""
    query = db.session.query(Product)
    if product_ids:
        query = query.filter(Product.id.in_(product_ids))
    return [
        {"sku": p.sku, "name": p.name, "price_cents": p.price_cents}
        for p in query.order_by(Product.name.asc(), Product.id.asc()).all()
    ]
