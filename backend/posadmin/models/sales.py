from __future__ import annotations

from ..extensions import db
from ..money import money_json, optional_money_json
from ..time_utils import localnow, to_iso

ORDER_STATUS_COMPLETED = "completed"
ORDER_STATUS_REFUNDED = "refunded"
ORDER_STATUSES = (ORDER_STATUS_COMPLETED, ORDER_STATUS_REFUNDED)


class PaymentType(db.Model):
    """Tender types; orders reference them by code (payment_method)."""
    __tablename__ = "payment_types"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_payment_types_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(32), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
        }


class Order(db.Model):
    """
    A receipt. Amounts are snapshots taken at sale time.

    A refund flips status to "refunded"; the row and its items are kept so
    reports can show the sale and the refund against the original day.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_orders_order_number"),
        db.Index("ix_orders_created_at", "created_at"),
        db.Index("ix_orders_store_created", "store_id", "created_at"),
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(64), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    store_id = db.Column(db.Integer, db.ForeignKey("store_settings.id"), nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    discount_id = db.Column(db.Integer, db.ForeignKey("discounts.id"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_COMPLETED)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=True)
    amount_tendered = db.Column(db.Numeric(10, 2), nullable=True)
    change = db.Column(db.Numeric(10, 2), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=localnow)
    refunded_at = db.Column(db.DateTime, nullable=True)

    store = db.relationship("StoreSettings")
    user = db.relationship("User")
    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    @property
    def is_refund(self) -> bool:
        return self.status == ORDER_STATUS_REFUNDED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "customerId": self.customer_id,
            "storeId": self.store_id,
            "userId": self.user_id,
            "discountId": self.discount_id,
            "status": self.status,
            "subtotal": money_json(self.subtotal),
            "tax": money_json(self.tax),
            "discount": money_json(self.discount),
            "total": money_json(self.total),
            "paymentMethod": self.payment_method,
            "amountTendered": optional_money_json(self.amount_tendered),
            "change": optional_money_json(self.change),
            "createdAt": to_iso(self.created_at),
            "refundedAt": to_iso(self.refunded_at),
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = (
        db.Index("ix_order_items_order", "order_id"),
        db.Index("ix_order_items_product", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    variant_id = db.Column(db.Integer, db.ForeignKey("product_variants.id"), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    # Unit price at sale time
    price = db.Column(db.Numeric(10, 2), nullable=False)
    notes = db.Column(db.String(255), nullable=True)

    product = db.relationship("Product")
    modifiers = db.relationship(
        "OrderItemModifier",
        backref="order_item",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "productId": self.product_id,
            "variantId": self.variant_id,
            "productName": self.product.name if self.product else None,
            "quantity": self.quantity,
            "price": money_json(self.price),
            "notes": self.notes,
            "modifiers": [m.to_dict() for m in self.modifiers],
        }


class OrderItemModifier(db.Model):
    """Modifier option chosen on a line, with its price snapshot."""
    __tablename__ = "order_item_modifiers"
    __table_args__ = (
        db.Index("ix_order_item_modifiers_item", "order_item_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False)
    modifier_id = db.Column(db.Integer, db.ForeignKey("modifiers.id"), nullable=False)
    modifier_option_id = db.Column(db.Integer, db.ForeignKey("modifier_options.id"), nullable=True)
    name = db.Column(db.String(120), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    modifier = db.relationship("Modifier")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "modifierId": self.modifier_id,
            "modifierOptionId": self.modifier_option_id,
            "name": self.name,
            "price": money_json(self.price),
            "quantity": self.quantity,
        }


KITCHEN_STATUS_PENDING = "pending"
KITCHEN_STATUS_IN_PROGRESS = "in-progress"
KITCHEN_STATUS_COMPLETED = "completed"
KITCHEN_STATUS_CANCELLED = "cancelled"
KITCHEN_STATUSES = (
    KITCHEN_STATUS_PENDING,
    KITCHEN_STATUS_IN_PROGRESS,
    KITCHEN_STATUS_COMPLETED,
    KITCHEN_STATUS_CANCELLED,
)


class KitchenOrder(db.Model):
    """A ticket sent to the kitchen for an order; higher priority is served first."""
    __tablename__ = "kitchen_orders"
    __table_args__ = (
        db.Index("ix_kitchen_orders_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=KITCHEN_STATUS_PENDING)
    priority = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=localnow)

    order = db.relationship("Order")
    items = db.relationship(
        "KitchenOrderItem",
        backref="kitchen_order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="KitchenOrderItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "status": self.status,
            "priority": self.priority,
            "notes": self.notes,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
            "order": self.order.to_dict() if self.order else None,
            "items": [item.to_dict() for item in self.items],
        }


class KitchenOrderItem(db.Model):
    __tablename__ = "kitchen_order_items"
    __table_args__ = (
        db.Index("ix_kitchen_order_items_ticket", "kitchen_order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kitchen_order_id = db.Column(db.Integer, db.ForeignKey("kitchen_orders.id"), nullable=False)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=KITCHEN_STATUS_PENDING)
    # Minutes
    preparation_time = db.Column(db.Integer, nullable=True)
    started_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=localnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=localnow)

    order_item = db.relationship("OrderItem")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kitchenOrderId": self.kitchen_order_id,
            "orderItemId": self.order_item_id,
            "status": self.status,
            "preparationTime": self.preparation_time,
            "startedAt": to_iso(self.started_at),
            "completedAt": to_iso(self.completed_at),
            "orderItem": self.order_item.to_dict() if self.order_item else None,
        }
