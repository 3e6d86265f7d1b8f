from datetime import date, datetime
from ..extensions import db
from .base import SerializerMixin, enum_column
from .enums import CardStatus, CardType


class Bank(db.Model, SerializerMixin):
    __tablename__ = "banks"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    country = db.Column(db.String(64), default="")
    currency = db.Column(db.String(8), default="USD")
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    accounts = db.relationship("BankAccount", backref="bank", lazy="select")


class BankAccount(db.Model, SerializerMixin):
    __tablename__ = "bank_accounts"
    __hidden__ = ("login_password",)

    id = db.Column(db.Integer, primary_key=True)
    bank_id = db.Column(db.Integer, db.ForeignKey("banks.id"), nullable=False, index=True)
    account_name = db.Column(db.String(128), nullable=False)
    account_number = db.Column(db.String(64), nullable=False)
    sort_code = db.Column(db.String(32), default="")
    login_url = db.Column(db.String(255), default="")
    login_password = db.Column(db.String(255), default="")
    bank_address = db.Column(db.String(255), default="")
    pink_cards_daily_limit = db.Column(db.Integer, nullable=False, default=5)
    pink_cards_remaining = db.Column(db.Integer, nullable=False, default=5)
    last_reset_date = db.Column(db.Date, nullable=False, default=date.today)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cards = db.relationship("Card", backref="bank_account", lazy="select")

    __table_args__ = (
        db.CheckConstraint(
            "pink_cards_remaining >= 0 AND pink_cards_remaining <= pink_cards_daily_limit",
            name="ck_pink_cards_bounds",
        ),
    )


class Card(db.Model, SerializerMixin):
    __tablename__ = "cards"

    id = db.Column(db.Integer, primary_key=True)
    bank_account_id = db.Column(db.Integer, db.ForeignKey("bank_accounts.id"), nullable=False, index=True)
    card_number = db.Column(db.String(32), nullable=False)
    expiry_date = db.Column(db.String(7), nullable=False)  # MM/YY
    cvv = db.Column(db.String(4), nullable=False)
    card_type = enum_column(CardType, nullable=False, default=CardType.GRAY)
    status = enum_column(CardStatus, nullable=False, default=CardStatus.FREE, index=True)

    # назначение
    assigned_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True, index=True)
    assigned_casino_id = db.Column(db.Integer, db.ForeignKey("casinos.id"), nullable=True)
    assigned_to = db.Column(db.String(255), nullable=True)  # "Имя (username)"
    assigned_site = db.Column(db.String(255), nullable=True)
    assigned_at = db.Column(db.DateTime, nullable=True)
    times_assigned = db.Column(db.Integer, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def clear_assignment(self) -> None:
        self.assigned_employee_id = None
        self.assigned_casino_id = None
        self.assigned_to = None
        self.assigned_site = None
        self.assigned_at = None
