from __future__ import annotations

from ..extensions import db
from ..money import money_json
from ..time_utils import localnow, to_iso


class Customer(db.Model):
    """
    A loyalty customer. Visit counters and total spent are maintained by
    order creation; clients never write them.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("customer_code", name="uq_customers_customer_code"),
        db.Index("ix_customers_name", "customer_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    province = db.Column(db.String(120), nullable=True)
    postal_code = db.Column(db.String(32), nullable=True)
    country = db.Column(db.String(120), nullable=True)
    customer_code = db.Column(db.String(64), nullable=True)
    points_balance = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    note = db.Column(db.Text, nullable=True)

    first_visit = db.Column(db.DateTime, nullable=False, default=localnow)
    last_visit = db.Column(db.DateTime, nullable=False, default=localnow)
    total_visits = db.Column(db.Integer, nullable=False, default=0)
    total_spent = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "province": self.province,
            "postalCode": self.postal_code,
            "country": self.country,
            "customerCode": self.customer_code,
            "pointsBalance": money_json(self.points_balance),
            "note": self.note,
            "firstVisit": to_iso(self.first_visit),
            "lastVisit": to_iso(self.last_visit),
            "totalVisits": self.total_visits,
            "totalSpent": money_json(self.total_spent),
        }
