# Overview: The closed set of capability flags a role can carry.
# Each permission is defined as: (code, name, description)

PERMISSION_DEFINITIONS = [
    (
        "canManageProducts",
        "Manage Products",
        "Create, edit and delete products, variants and modifiers",
    ),
    (
        "canManageCategories",
        "Manage Categories",
        "Create, edit and delete product categories",
    ),
    (
        "canManageOrders",
        "Manage Orders",
        "Ring up sales, issue refunds and run shifts",
    ),
    (
        "canManageCustomers",
        "Manage Customers",
        "Create and edit customer records",
    ),
    (
        "canViewCustomers",
        "View Customers",
        "Look up customer records",
    ),
    (
        "canViewReports",
        "View Reports",
        "View sales, item, employee and shift reports",
    ),
    (
        "canManageSettings",
        "Manage Settings",
        "Edit stores, taxes, discounts, devices and payment types",
    ),
    (
        "canManageUsers",
        "Manage Users",
        "Create and edit employees and custom roles",
    ),
]

# Ordered tuple of codes; no other keys are ever honored
PERMISSION_KEYS = tuple(perm[0] for perm in PERMISSION_DEFINITIONS)
