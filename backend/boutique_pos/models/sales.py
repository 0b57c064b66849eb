from __future__ import annotations

from ..extensions import db
from boutique_pos.time_utils import to_local_iso

PAYMENT_METHODS = ("cash", "card", "transfer", "rappi")


class Sale(db.Model):
    """
    Committed sale (immutable once written).

    Line items are stored inline as snapshots {sku, name, price_cents, quantity}:
    they are never re-derived from the catalog, so price history survives later
    edits or deletion of the product.

    `date` is local wall-clock time and is the only range-query axis.
    `total_cents` is stored redundantly and always equals
    sum(price_cents * quantity) over items.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_date", "date"),
        db.Index("ix_sales_payment_date", "payment_method", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, nullable=False)
    items = db.Column(db.JSON, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)

    def __repr__(self) -> str:
        return f"<Sale id={self.id} date={self.date} total_cents={self.total_cents} method={self.payment_method}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_local_iso(self.date),
            "items": [dict(item) for item in (self.items or [])],
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
        }
