# -*- coding: utf-8 -*-
"""
Полный ресет dev-БД и базовое наполнение: по пользователю на каждую роль,
банк со счётом и парой карт, одно казино.

Запуск из корня проекта:
  python scripts/recreate_db.py
"""

from __future__ import annotations

import sys
import traceback
from pathlib import Path
from typing import Optional

from sqlalchemy import text

# --- путь к проекту ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

print(f"[recreate] ROOT={ROOT}")
if not (ROOT / "backoffice" / "__init__.py").exists():
    raise SystemExit("[recreate] ошибка: пакет backoffice не найден рядом со scripts/")

print("[recreate] импорт приложения…")
from backoffice import create_app  # noqa: E402
from backoffice.extensions import db  # noqa: E402
from backoffice.models import Bank, BankAccount, Card, Casino, Employee, User  # noqa: E402
from backoffice.models.enums import WORKER_ROLES, CardType, Role  # noqa: E402

# логин = пароль, только для разработки
SEED_USERS = [
    ("admin", Role.ADMIN, "Администратор"),
    ("cfo", Role.CFO, "Финансовый директор"),
    ("manager", Role.MANAGER, "Менеджер"),
    ("hr", Role.HR, "Кадры"),
    ("worker", Role.EMPLOYEE, "Сотрудник"),
    ("tester", Role.TESTER, "Тестировщик"),
]


def _db_path_from_uri(uri: str) -> Optional[Path]:
    if uri.startswith("sqlite:///"):
        return Path(uri.replace("sqlite:///", "")).resolve()
    return None


def _cnt(table: str) -> int:
    return int(db.session.execute(text(f'SELECT COUNT(*) FROM "{table}"')).scalar() or 0)


def main() -> int:
    print("[recreate] create_app()…")
    app = create_app()
    with app.app_context():
        uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
        print(f"[recreate] SQLALCHEMY_DATABASE_URI = {uri}")

        db_path = _db_path_from_uri(uri)
        if db_path:
            db.engine.dispose()
            if db_path.exists():
                print(f"[recreate] удаляю файл БД: {db_path}")
                db_path.unlink()
        else:
            print("[recreate] БД не sqlite, удаляю таблицы через drop_all()")
            db.drop_all()

        print("[recreate] создаю таблицы по моделям…")
        db.create_all()

        print("[recreate] создаю пользователей…")
        for username, role, full_name in SEED_USERS:
            u = User(username=username, role=role, full_name=full_name)
            u.set_password(username)
            db.session.add(u)
            db.session.flush()
            if role in WORKER_ROLES:
                db.session.add(Employee(user_id=u.id))
        db.session.commit()
        print(f"[recreate] users={_cnt('users')} employees={_cnt('employees')}")

        print("[recreate] банк, счёт, карты, казино…")
        bank = Bank(name="Demo Bank", country="GB", currency="GBP")
        db.session.add(bank)
        db.session.flush()
        acc = BankAccount(
            bank_id=bank.id, account_name="Demo Ltd", account_number="12345678",
            sort_code="00-00-00", pink_cards_daily_limit=app.config["PINK_CARDS_DAILY_LIMIT"],
            pink_cards_remaining=app.config["PINK_CARDS_DAILY_LIMIT"],
        )
        db.session.add(acc)
        db.session.flush()
        db.session.add_all([
            Card(bank_account_id=acc.id, card_number="4111111111111111", expiry_date="12/29",
                 cvv="123", card_type=CardType.GRAY),
            Card(bank_account_id=acc.id, card_number="5555555555554444", expiry_date="11/28",
                 cvv="456", card_type=CardType.PINK),
        ])
        db.session.add(Casino(name="Demo Casino", url="https://casino.example"))
        db.session.commit()
        print(f"[recreate] cards={_cnt('cards')} casinos={_cnt('casinos')}")

        print("\n[recreate] Готово. Логины (пароль = логин):")
        for username, role, _ in SEED_USERS:
            print(f"  {username:<8} {role.value}")
        if db_path:
            print(f"\nФайл БД: {db_path}")
        return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception:
        print("\n[recreate] ОШИБКА:")
        traceback.print_exc()
        sys.exit(1)
