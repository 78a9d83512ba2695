# Overview: Shared report filter parsing, date-range normalization and derived metrics.

"""
One filter builder for every report.

Every report takes startDate, endDate, store and employee query
parameters. They are parsed once here into ReportFilters and applied to a
query with ReportFilters.apply(), so all reports agree on whole-day
boundaries and on what "all" means.

DATE RANGE RULES:
- Missing start: 30 days before today. Missing end: today.
- Start is floored to 00:00:00.000, end is ceiled to 23:59:59.999.
- startDate == endDate: match rows whose calendar day equals that day.
- Otherwise: inclusive range between the two bounds.
- Malformed dates, or start after end, raise ValidationError.

STORE / EMPLOYEE:
- Absent or the literal "all": no filter.
- A positive integer: filter on it.
- Anything else: the filter is dropped (and logged), never turned into 0.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy import func

from ..errors import ValidationError
from ..money import ZERO, to_decimal
from ..time_utils import days_between, end_of_day, localnow, parse_iso_date, start_of_day

logger = logging.getLogger(__name__)

DEFAULT_RANGE_DAYS = 30
ALL_SENTINEL = "all"


@dataclass(frozen=True)
class DateRange:
    start_day: date
    end_day: date

    @property
    def start(self) -> datetime:
        return start_of_day(self.start_day)

    @property
    def end(self) -> datetime:
        return end_of_day(self.end_day)

    @property
    def same_day(self) -> bool:
        return self.start_day == self.end_day

    def days(self) -> list[date]:
        return days_between(self.start_day, self.end_day)

    def condition(self, column):
        """SQL predicate restricting `column` (a DateTime) to this range."""
        if self.same_day:
            return func.date(column) == self.start_day.isoformat()
        return column.between(self.start, self.end)

    def contains(self, value: datetime) -> bool:
        return self.start <= value <= self.end


def _parse_day(raw, field: str) -> date | None:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", details={field: "date"})


def normalize_date_range(start_raw=None, end_raw=None, *, today: date | None = None) -> DateRange:
    today = today or localnow().date()

    end_day = _parse_day(end_raw, "endDate") or today
    start_day = _parse_day(start_raw, "startDate") or (today - timedelta(days=DEFAULT_RANGE_DAYS))

    if start_day > end_day:
        raise ValidationError(
            "startDate must be on or before endDate",
            details={"startDate": "after endDate"},
        )
    return DateRange(start_day=start_day, end_day=end_day)


def parse_id_filter(raw, field: str = "id") -> int | None:
    """'all' / absent -> None; positive integer -> int; anything else -> None."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text or text.lower() == ALL_SENTINEL:
        return None
    if re.fullmatch(r"[0-9]+", text) and int(text) > 0:
        return int(text)
    logger.warning("Ignoring invalid %s filter value %r", field, raw)
    return None


@dataclass(frozen=True)
class ReportFilters:
    date_range: DateRange
    store_id: int | None = None
    employee_id: int | None = None
    search: str | None = None

    @classmethod
    def from_args(cls, args, *, today: date | None = None) -> "ReportFilters":
        """Build from request.args (or any mapping with .get)."""
        search = (args.get("search") or "").strip() or None
        return cls(
            date_range=normalize_date_range(args.get("startDate"), args.get("endDate"), today=today),
            # sales-by-category historically sends storeId
            store_id=parse_id_filter(args.get("store", args.get("storeId")), "store"),
            employee_id=parse_id_filter(args.get("employee", args.get("employeeId")), "employee"),
            search=search,
        )

    def apply(self, query, *, time_column, store_column=None, employee_column=None):
        query = query.filter(self.date_range.condition(time_column))
        if self.store_id is not None and store_column is not None:
            query = query.filter(store_column == self.store_id)
        if self.employee_id is not None and employee_column is not None:
            query = query.filter(employee_column == self.employee_id)
        return query

    def search_condition(self, column):
        """Substring match on column; % and _ in the search text match literally."""
        escaped = self.search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return column.ilike(f"%{escaped}%", escape="\\")

    def to_dict(self) -> dict:
        return {
            "startDate": self.date_range.start_day.isoformat(),
            "endDate": self.date_range.end_day.isoformat(),
            "store": self.store_id if self.store_id is not None else ALL_SENTINEL,
            "employee": self.employee_id if self.employee_id is not None else ALL_SENTINEL,
        }


def net_sales(gross, refunds, discounts) -> Decimal:
    return to_decimal(gross) - to_decimal(refunds) - to_decimal(discounts)


def margin(gross_profit, net) -> Decimal:
    """grossProfit / netSales when netSales > 0, else 0."""
    net = to_decimal(net)
    if net <= ZERO:
        return ZERO
    return to_decimal(gross_profit) / net


def share(amount, part, whole) -> Decimal:
    """amount * part / whole, 0 when whole is not positive."""
    whole = to_decimal(whole)
    if whole <= ZERO:
        return ZERO
    return to_decimal(amount) * to_decimal(part) / whole
