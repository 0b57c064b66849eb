from __future__ import annotations

from ..extensions import db
from boutique_pos.time_utils import to_local_iso


class DailyClosing(db.Model):
    """
    Cash drawer record for one calendar day, keyed by 'YYYY-MM-DD'.

    LIFECYCLE:
    - Created lazily the first time an opening float is saved for the day
    - initial_cash_cents editable while is_closed is false
    - Closed only by an explicit operator action (close_day); never automatically
    """
    __tablename__ = "daily_closings"

    date = db.Column(db.String(10), primary_key=True)
    initial_cash_cents = db.Column(db.Integer, nullable=False, default=0)
    final_cash_actual_cents = db.Column(db.Integer, nullable=True)
    is_closed = db.Column(db.Boolean, nullable=False, default=False)
    closed_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "initial_cash_cents": self.initial_cash_cents,
            "final_cash_actual_cents": self.final_cash_actual_cents,
            "is_closed": self.is_closed,
            "closed_at": to_local_iso(self.closed_at) if self.closed_at else None,
        }
