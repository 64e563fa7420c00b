"""Helper utilities for teaching Jinja2 how to format billing data.

Templates are the presentation layer. This module builds the one templates
environment every router shares and registers the filters the pages use for
dates and rupee amounts.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any
from zoneinfo import ZoneInfo

from fastapi.templating import Jinja2Templates

from .config import settings

_LOCAL_TZ = ZoneInfo(settings.TZ) if settings.TZ else None


def _to_date(value: Any) -> date | None:
    """Accept ``date``/``datetime`` objects or ISO strings from the backend."""

    if isinstance(value, datetime):
        if value.tzinfo is not None and _LOCAL_TZ:
            value = value.astimezone(_LOCAL_TZ)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _fmt_date(value: Any) -> str:
    """Short day/month/year format used in tables."""

    d = _to_date(value)
    return d.strftime("%d/%m/%Y") if d else "-"


def _fmt_date_long(value: Any) -> str:
    d = _to_date(value)
    if not d:
        return "-"
    return f"{d.strftime('%A')}, {d.day} {d.strftime('%B %Y')}"


def _group_indian(whole: str) -> str:
    # 1234567 -> 12,34,567
    if len(whole) <= 3:
        return whole
    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def _fmt_currency(value: Any) -> str:
    """Rupee amount with Indian digit grouping and two decimals."""

    try:
        number = Decimal(str(value)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        return ""
    sign = "-" if number < 0 else ""
    whole, _, fraction = f"{abs(number):.2f}".partition(".")
    return f"{sign}₹{_group_indian(whole)}.{fraction}"


@lru_cache(maxsize=1)
def get_templates() -> Jinja2Templates:
    """Create a ``Jinja2Templates`` instance with our standard filters registered."""

    templates = Jinja2Templates(directory=str(settings.TEMPLATES_DIR))
    env = templates.env
    env.filters["fmt_date"] = _fmt_date
    env.filters["fmt_date_long"] = _fmt_date_long
    env.filters["fmt_currency"] = _fmt_currency
    env.globals["app_name"] = settings.APP_NAME
    return templates
