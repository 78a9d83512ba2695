from .auth import User, Role, RefreshToken
from .stores import StoreSettings, PosDevice, DiningOption, KitchenQueue
from .catalog import (
    Category,
    TaxCategory,
    Product,
    ProductVariant,
    ProductStore,
    Modifier,
    ModifierOption,
    ProductModifier,
    Discount,
    Allergen,
)
from .customers import Customer
from .sales import (
    PaymentType,
    Order,
    OrderItem,
    OrderItemModifier,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_REFUNDED,
    ORDER_STATUSES,
    KitchenOrder,
    KitchenOrderItem,
    KITCHEN_STATUSES,
    KITCHEN_STATUS_COMPLETED,
    KITCHEN_STATUS_IN_PROGRESS,
)
from .timekeeping import Shift

__all__ = [
    "User",
    "Role",
    "RefreshToken",
    "StoreSettings",
    "PosDevice",
    "DiningOption",
    "KitchenQueue",
    "Category",
    "TaxCategory",
    "Product",
    "ProductVariant",
    "ProductStore",
    "Modifier",
    "ModifierOption",
    "ProductModifier",
    "Discount",
    "Allergen",
    "Customer",
    "PaymentType",
    "Order",
    "OrderItem",
    "OrderItemModifier",
    "ORDER_STATUS_COMPLETED",
    "ORDER_STATUS_REFUNDED",
    "ORDER_STATUSES",
    "KitchenOrder",
    "KitchenOrderItem",
    "KITCHEN_STATUSES",
    "KITCHEN_STATUS_COMPLETED",
    "KITCHEN_STATUS_IN_PROGRESS",
    "Shift",
]
