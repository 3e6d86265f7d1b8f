"""Shared test fixtures.

Запросы тест-клиента делаются вне app_context: Flask-Login кеширует
пользователя в g, а g живёт в контексте приложения.
"""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest

from backoffice import create_app
from backoffice.config import TestConfig
from backoffice.extensions import db
from backoffice.models import Bank, BankAccount, Card, Casino, Employee, Transaction, User
from backoffice.models.enums import WORKER_ROLES, CardStatus, CardType, Role, TransactionStatus, TransactionType
from backoffice.security import open_session

PASSWORD = "secret-pass"


@pytest.fixture
def app(tmp_path):
    class _Config(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{(tmp_path / 'test.db').as_posix()}"

    app = create_app(_Config)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def users(app) -> dict[Role, SimpleNamespace]:
    """По одному активному пользователю на роль, с открытой сессией."""
    out: dict[Role, SimpleNamespace] = {}
    with app.app_context():
        for i, role in enumerate(Role, start=1):
            u = User(username=role.value.lower(), role=role, full_name=f"{role.value} User")
            u.set_password(PASSWORD)
            db.session.add(u)
            db.session.flush()
            employee_id = None
            if role in WORKER_ROLES:
                emp = Employee(user_id=u.id)
                db.session.add(emp)
                db.session.flush()
                employee_id = emp.id
            token = open_session(u, ip=f"10.0.0.{i}", user_agent="pytest")
            out[role] = SimpleNamespace(
                id=u.id, username=u.username, token=token,
                headers=bearer(token), employee_id=employee_id, ip=f"10.0.0.{i}",
            )
        db.session.commit()
    return out


@pytest.fixture
def admin(users):
    return users[Role.ADMIN]


@pytest.fixture
def make(app):
    """Фабрики строк напрямую в БД; возвращают id."""

    def _add(obj) -> int:
        with app.app_context():
            db.session.add(obj)
            db.session.commit()
            return obj.id

    def account(limit: int = 5, remaining: int | None = None, bank_name: str = "Test Bank") -> int:
        with app.app_context():
            bank = Bank(name=bank_name, country="GB")
            db.session.add(bank)
            db.session.flush()
            acc = BankAccount(
                bank_id=bank.id, account_name="Acc", account_number="0001",
                pink_cards_daily_limit=limit,
                pink_cards_remaining=limit if remaining is None else remaining,
            )
            db.session.add(acc)
            db.session.commit()
            return acc.id

    def card(account_id: int, status: CardStatus = CardStatus.FREE, card_type: CardType = CardType.GRAY,
             number: str = "4111111111111111") -> int:
        return _add(Card(bank_account_id=account_id, card_number=number, expiry_date="12/29",
                         cvv="123", card_type=card_type, status=status))

    def casino(name: str = "Lucky") -> int:
        return _add(Casino(name=name, url=f"https://{name.lower()}.example"))

    def worker(username: str, role: Role = Role.EMPLOYEE, active: bool = True) -> SimpleNamespace:
        with app.app_context():
            u = User(username=username, role=role, full_name=username.title(), is_active=active)
            u.set_password(PASSWORD)
            db.session.add(u)
            db.session.flush()
            emp = Employee(user_id=u.id, is_active=active)
            db.session.add(emp)
            db.session.commit()
            return SimpleNamespace(user_id=u.id, employee_id=emp.id, username=username)

    def transaction(employee_id: int, card_id: int, casino_id: int, profit, *, on: date | None = None,
                    status: TransactionStatus = TransactionStatus.COMPLETED,
                    tx_type: TransactionType = TransactionType.WITHDRAWAL, amount="100.00") -> int:
        return _add(Transaction(
            employee_id=employee_id, card_id=card_id, casino_id=casino_id,
            transaction_type=tx_type, amount=amount, profit=profit, status=status,
            transaction_date=on or date.today(),
        ))

    return SimpleNamespace(account=account, card=card, casino=casino, worker=worker, transaction=transaction)
