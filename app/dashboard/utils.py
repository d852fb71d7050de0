from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

ITEMS_PER_PAGE = 6


def utc_today() -> date:
    """Invoice dates are calendar days in UTC, not the server's local day."""
    return datetime.now(timezone.utc).date()


def dollars_to_cents(amount: float | Decimal | str) -> int:
    """Convert a dollar amount to integer cents (dollars x 100, half-up)."""
    value = Decimal(str(amount)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_currency(cents: int | None) -> str:
    if cents is None:
        return "$0.00"
    sign = "-" if cents < 0 else ""
    return f"{sign}${abs(cents) / 100:,.2f}"


def parse_page(raw: str | None) -> int:
    try:
        page = int((raw or "").strip() or 1)
    except ValueError:
        return 1
    return max(page, 1)


def total_pages(count: int, per_page: int = ITEMS_PER_PAGE) -> int:
    return max((count + per_page - 1) // per_page, 1)


def generate_pagination(current_page: int, pages: int) -> list[int | str]:
    """Page links with "..." gaps, e.g. [1, 2, 3, "...", 9, 10]."""
    if pages <= 7:
        return list(range(1, pages + 1))
    if current_page <= 3:
        return [1, 2, 3, "...", pages - 1, pages]
    if current_page >= pages - 2:
        return [1, 2, "...", pages - 2, pages - 1, pages]
    return [1, "...", current_page - 1, current_page, current_page + 1, "...", pages]
