# -*- coding: utf-8 -*-
from __future__ import annotations

import re
from calendar import monthrange
from datetime import date, datetime

from .errors import ValidationFailed

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def month_of(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def current_month() -> str:
    return month_of(date.today())


def parse_month(raw: str | None, default_current: bool = True) -> str:
    """YYYY-MM из строки запроса; пусто -> текущий месяц."""
    s = (raw or "").strip()
    if not s:
        if default_current:
            return current_month()
        raise ValidationFailed("Не указан месяц", [{"field": "month", "message": "Ожидается YYYY-MM"}])
    if not MONTH_RE.match(s):
        raise ValidationFailed("Неверный формат месяца", [{"field": "month", "message": "Ожидается YYYY-MM"}])
    return s


def month_bounds(month: str) -> tuple[date, date]:
    # end: первый день следующего месяца
    y, m = map(int, month.split("-"))
    start = date(y, m, 1)
    end = date(y + (1 if m == 12 else 0), 1 if m == 12 else m + 1, 1)
    return start, end


def time_to_month_end(now: datetime | None = None) -> dict[str, int]:
    now = now or datetime.now()
    last = monthrange(now.year, now.month)[1]
    end = datetime(now.year, now.month, last, 23, 59, 59)
    left = max(int((end - now).total_seconds()), 0)
    return {"days": left // 86400, "hours": left % 86400 // 3600, "minutes": left % 3600 // 60}
