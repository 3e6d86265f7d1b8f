# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(user_id: int | None, action: str, details: dict[str, Any] | None = None,
                 ip: str | None = None, user_agent: str | None = None) -> None:
    """Запись в журнал. Ошибка записи не должна ломать основную операцию."""
    try:
        db.session.add(ActivityLog(
            user_id=user_id, action=action, details=details or {},
            ip_address=ip, user_agent=(user_agent or "")[:256] or None,
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("activity log write failed: %s", action)


def log_ctx(ctx, action: str, details: dict[str, Any] | None = None) -> None:
    log_activity(ctx.user_id, action, details, ctx.ip, ctx.user_agent)
