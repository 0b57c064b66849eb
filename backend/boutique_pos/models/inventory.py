from __future__ import annotations

from ..extensions import db
from boutique_pos.time_utils import to_local_iso


class Product(db.Model):
    """
    Catalog entry.

    SKU DESIGN DECISION:
    Product.sku is the single scanner-facing code. It is unique across the
    catalog (one location, one writer) and is the key for scanner lookups,
    bulk upserts and sale decrements.

    STOCK INVARIANT:
    `stock` is the authoritative total. When the location breakdown is present
    (all three stock_* columns non-null) `stock == store + warehouse + display`
    must hold after every mutation. Use set_stock_details() rather than
    assigning the bucket columns one by one.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)

    # May go negative: oversell is recorded, not blocked
    stock = db.Column(db.Integer, nullable=False, default=0)

    # Optional location breakdown; all null when absent
    stock_store = db.Column(db.Integer, nullable=True)
    stock_warehouse = db.Column(db.Integer, nullable=True)
    stock_display = db.Column(db.Integer, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def has_breakdown(self) -> bool:
        return self.stock_store is not None

    @property
    def stock_details(self) -> dict | None:
        if not self.has_breakdown:
            return None
        return {
            "store": self.stock_store,
            "warehouse": self.stock_warehouse or 0,
            "display": self.stock_display or 0,
        }

    def effective_stock_details(self) -> dict:
        """Breakdown used for reconciliation: absent means everything is in 'store'."""
        return self.stock_details or {"store": self.stock or 0, "warehouse": 0, "display": 0}

    def set_stock_details(self, details: dict) -> None:
        """Replace the breakdown and recompute stock as its sum."""
        self.stock_store = int(details.get("store", 0))
        self.stock_warehouse = int(details.get("warehouse", 0))
        self.stock_display = int(details.get("display", 0))
        self.stock = self.stock_store + self.stock_warehouse + self.stock_display

    def clear_stock_details(self) -> None:
        self.stock_store = None
        self.stock_warehouse = None
        self.stock_display = None

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "price_cents": self.price_cents,
            "stock": self.stock,
            "stock_details": self.stock_details,
            "version_id": self.version_id,
            "created_at": to_local_iso(self.created_at),
            "updated_at": to_local_iso(self.updated_at),
        }
