# -*- coding: utf-8 -*-
from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from ..extensions import db


D = lambda v: Decimal(str(v)) if v is not None else Decimal("0")
CENTS = Decimal("0.01")


def money(v) -> Decimal:
    return D(v).quantize(CENTS, rounding=ROUND_HALF_UP)


def enum_column(enum_cls: type[enum.Enum], **kw):
    """Колонка с закрытым набором значений; в БД хранится строковое значение enum."""
    return db.Column(
        db.Enum(
            enum_cls,
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
            length=16,
        ),
        **kw,
    )


def plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class SerializerMixin:
    # поля, которые никогда не уходят клиенту
    __hidden__: tuple[str, ...] = ()

    def to_dict(self, exclude: Iterable[str] = ()) -> dict[str, Any]:
        skip = set(self.__hidden__) | set(exclude)
        return {
            c.key: plain(getattr(self, c.key))
            for c in self.__table__.columns  # type: ignore[attr-defined]
            if c.key not in skip
        }
