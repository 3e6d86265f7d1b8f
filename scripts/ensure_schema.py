"""
Актуализация схемы БД (без удаления данных).

Создаёт недостающие таблицы, объявленные в моделях backoffice.models,
не трогая существующие данные.

Запуск:
  python scripts/ensure_schema.py
"""

from __future__ import annotations

import sys
from pathlib import Path

from sqlalchemy import inspect

# Гарантируем, что корень проекта есть в sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

print("[ensure] Загружаю приложение...")
from backoffice import create_app  # noqa: E402
from backoffice.extensions import db  # noqa: E402
from backoffice import models  # noqa: E402,F401  регистрирует таблицы в метаданных

# без этих таблиц приложение не поднимется
CORE_TABLES = ("users", "user_sessions", "employees", "cards", "transactions", "salary_calculations")


def _tables() -> set[str]:
    return set(inspect(db.engine).get_table_names())


def main() -> int:
    app = create_app()
    with app.app_context():
        print(f"[ensure] SQLALCHEMY_DATABASE_URI = {app.config.get('SQLALCHEMY_DATABASE_URI', '')}")

        before = _tables()
        print(f"[ensure] Таблиц до: {len(before)}")

        print("[ensure] Создание недостающих таблиц (если есть)...")
        db.create_all()

        after = _tables()
        created = sorted(after - before)
        if created:
            print(f"[ensure] Созданы таблицы: {', '.join(created)}")
        else:
            print("[ensure] Новых таблиц не потребовалось.")

        missing = [t for t in CORE_TABLES if t not in after]
        if missing:
            print(f"[ensure] ВНИМАНИЕ: нет таблиц {', '.join(missing)}")
            return 1
        print("[ensure] Готово.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
