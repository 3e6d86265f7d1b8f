# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import text

from ...extensions import db

logger = logging.getLogger(__name__)


def reset_pink_limits(today: date | None = None) -> int:
    """Восстанавливает остаток розовых карт у счетов, не сброшенных сегодня."""
    today = today or date.today()
    res = db.session.execute(text("""
        UPDATE bank_accounts
        SET pink_cards_remaining = pink_cards_daily_limit,
            last_reset_date = :today
        WHERE last_reset_date < :today
    """), {"today": today.isoformat()})
    db.session.commit()
    logger.info("pink card limits reset: %d accounts", res.rowcount)
    return res.rowcount
