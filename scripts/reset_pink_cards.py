# -*- coding: utf-8 -*-
"""
Ежедневный сброс лимита розовых карт. Запускается внешним планировщиком
(cron и т.п.) раз в сутки, после полуночи.

Запуск:
  python scripts/reset_pink_cards.py
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backoffice import create_app  # noqa: E402
from backoffice.modules.cards.daily_reset import reset_pink_limits  # noqa: E402


def main() -> int:
    app = create_app()
    with app.app_context():
        n = reset_pink_limits()
        print(f"[reset] обновлено счетов: {n}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
