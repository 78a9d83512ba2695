# Overview: Service-layer operations for customers; CRUD, CSV import/export and visit tracking.

"""
Customer records.

CSV FORMAT (import and export share the header names):
    Customer name, Email, Phone, Address, City, Province, Postal code,
    Country, Customer code, Points balance, Note
Export adds Customer ID, First visit, Last visit, Total visits and
Total spent. An import is all-or-nothing: one bad row rejects the file.
"""

from __future__ import annotations

import csv
import io
import re

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import Customer
from ..money import quantize_money, to_decimal
from ..time_utils import localnow, to_iso
from ..validation import ModelValidationPolicy, apply_patch, require_positive, validate_payload
from .concurrency import lock_for_update
from .crud_service import CrudResource

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# (CSV header, column) in file order
IMPORT_COLUMNS = (
    ("Customer name", "customer_name"),
    ("Email", "email"),
    ("Phone", "phone"),
    ("Address", "address"),
    ("City", "city"),
    ("Province", "province"),
    ("Postal code", "postal_code"),
    ("Country", "country"),
    ("Customer code", "customer_code"),
    ("Points balance", "points_balance"),
    ("Note", "note"),
)

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset(column for _, column in IMPORT_COLUMNS),
    required_on_create=frozenset({"customer_name"}),
)


def _customer_rules(patch: dict, instance) -> None:
    email = patch.get("email")
    if email and not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email format", details={"email": "invalid"})
    for column in ("email", "customer_code"):
        if patch.get(column) == "":
            patch[column] = None
    require_positive(patch, "points_balance", allow_zero=True)


customers = CrudResource(
    model=Customer,
    policy=CUSTOMER_POLICY,
    label="Customer",
    unique_fields=("customer_code",),
    rules=_customer_rules,
    order_by="customer_name",
)


def list_customers(search: str | None = None) -> list[Customer]:
    query = db.session.query(Customer)
    if search:
        escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        query = query.filter(
            Customer.customer_name.ilike(pattern, escape="\\")
            | Customer.email.ilike(pattern, escape="\\")
            | Customer.phone.ilike(pattern, escape="\\")
            | Customer.customer_code.ilike(pattern, escape="\\")
        )
    return query.order_by(Customer.customer_name, Customer.id).all()


def _row_payload(row: dict) -> dict:
    payload = {}
    for header, column in IMPORT_COLUMNS:
        value = (row.get(header) or "").strip()
        if column == "points_balance":
            payload[column] = value or "0"
        elif column == "customer_name":
            payload[column] = value
        else:
            payload[column] = value or None
    return payload


def import_customers(csv_text) -> list[Customer]:
    """
    Create customers from CSV text. Returns the created rows.

    Raises ValidationError (with the 1-based data row number in details)
    on the first invalid row; nothing is written in that case.
    """
    if not isinstance(csv_text, str) or not csv_text.strip():
        raise ValidationError("No file provided", details={"file": "required"})

    reader = csv.DictReader(io.StringIO(csv_text.lstrip("\ufeff")))
    if not reader.fieldnames or "Customer name" not in reader.fieldnames:
        raise ValidationError("CSV must have a 'Customer name' column", details={"file": "header"})

    created = []
    seen_codes = set()
    try:
        for row_number, row in enumerate(reader, start=1):
            try:
                patch = validate_payload(
                    model=Customer, payload=_row_payload(row), policy=CUSTOMER_POLICY, partial=False
                )
                _customer_rules(patch, None)
                customers.check_unique(patch)
            except (ValidationError, ConflictError) as exc:
                raise ValidationError(
                    f"Row {row_number}: {exc.message}",
                    details={"row": row_number, "errors": exc.details},
                )
            code = patch.get("customer_code")
            if code is not None:
                if code in seen_codes:
                    raise ValidationError(
                        f"Row {row_number}: customer code {code!r} appears twice",
                        details={"row": row_number, "errors": {"customerCode": "duplicate"}},
                    )
                seen_codes.add(code)

            customer = Customer()
            apply_patch(customer, patch)
            db.session.add(customer)
            created.append(customer)

        if not created:
            raise ValidationError("No valid customers found in CSV", details={"file": "empty"})
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return created


EXPORT_HEADERS = (
    ["Customer ID"]
    + [header for header, _ in IMPORT_COLUMNS]
    + ["First visit", "Last visit", "Total visits", "Total spent"]
)


def export_customers() -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(EXPORT_HEADERS)
    for customer in db.session.query(Customer).order_by(Customer.id).all():
        writer.writerow([
            customer.id,
            customer.customer_name,
            customer.email or "",
            customer.phone or "",
            customer.address or "",
            customer.city or "",
            customer.province or "",
            customer.postal_code or "",
            customer.country or "",
            customer.customer_code or "",
            f"{quantize_money(customer.points_balance)}",
            customer.note or "",
            to_iso(customer.first_visit),
            to_iso(customer.last_visit),
            customer.total_visits,
            f"{quantize_money(customer.total_spent)}",
        ])
    return buf.getvalue()


def record_visit(customer_id: int, amount) -> Customer:
    """
    Count one visit and add the order total. Runs inside the caller's
    transaction; the caller commits.
    """
    customer = lock_for_update(db.session.query(Customer).filter(Customer.id == customer_id)).first()
    if customer is None:
        raise ValidationError(
            "customerId does not reference an existing record",
            details={"customerId": "not found"},
        )
    now = localnow()
    if not customer.total_visits:
        customer.first_visit = now
    customer.last_visit = now
    customer.total_visits = (customer.total_visits or 0) + 1
    customer.total_spent = to_decimal(customer.total_spent) + to_decimal(amount)
    return customer
