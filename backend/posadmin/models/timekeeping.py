from __future__ import annotations

from ..extensions import db
from ..money import money_json, optional_money_json, to_decimal
from ..time_utils import localnow, to_iso


class Shift(db.Model):
    """
    A cashier's working shift and its cash drawer reconciliation.

    INVARIANT: at most one active shift per user. Enforced by shift_service
    and, against races, by the partial unique index below.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        db.Index("ix_shifts_store_opening", "store_id", "opening_time"),
        db.Index("ix_shifts_user_opening", "user_id", "opening_time"),
        db.Index(
            "uq_shifts_one_active_per_user",
            "user_id",
            unique=True,
            sqlite_where=db.text("is_active = 1"),
            postgresql_where=db.text("is_active"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("store_settings.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    opening_time = db.Column(db.DateTime, nullable=False, default=localnow)
    closing_time = db.Column(db.DateTime, nullable=True)

    expected_cash_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    actual_cash_amount = db.Column(db.Numeric(10, 2), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    notes = db.Column(db.Text, nullable=True)

    store = db.relationship("StoreSettings")
    user = db.relationship("User")

    @property
    def cash_difference(self):
        """actual - expected; None until the drawer is counted."""
        if self.actual_cash_amount is None:
            return None
        return to_decimal(self.actual_cash_amount) - to_decimal(self.expected_cash_amount)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeId": self.store_id,
            "userId": self.user_id,
            "openingTime": to_iso(self.opening_time),
            "closingTime": to_iso(self.closing_time),
            "expectedCashAmount": money_json(self.expected_cash_amount),
            "actualCashAmount": optional_money_json(self.actual_cash_amount),
            "difference": optional_money_json(self.cash_difference),
            "isActive": self.is_active,
            "notes": self.notes,
        }
