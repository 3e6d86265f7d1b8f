from datetime import date, datetime
from ..extensions import db
from .base import SerializerMixin, enum_column
from .enums import TransactionStatus, TransactionType, WithdrawalStatus


class Transaction(db.Model, SerializerMixin):
    __tablename__ = "transactions"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    card_id = db.Column(db.Integer, db.ForeignKey("cards.id"), nullable=False, index=True)
    casino_id = db.Column(db.Integer, db.ForeignKey("casinos.id"), nullable=False, index=True)
    transaction_type = enum_column(TransactionType, nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    profit = db.Column(db.Numeric(12, 2), nullable=True)
    status = enum_column(TransactionStatus, nullable=False, default=TransactionStatus.PENDING)
    transaction_date = db.Column(db.Date, nullable=False, default=date.today, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)


class WorkEntry(db.Model, SerializerMixin):
    """Отчёт сотрудника об одной сессии в казино (депозит/вывод)."""
    __tablename__ = "work_entries"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    month = db.Column(db.String(7), nullable=False, index=True)  # YYYY-MM
    casino_name = db.Column(db.String(128), nullable=False)
    deposit_amount = db.Column(db.Numeric(12, 2), default=0)
    withdrawal_amount = db.Column(db.Numeric(12, 2), default=0)
    card_number = db.Column(db.String(32), default="")
    card_expiry = db.Column(db.String(7), default="")
    card_cvv = db.Column(db.String(4), default="")
    card_type = db.Column(db.String(16), default="")
    bank_name = db.Column(db.String(128), default="")
    account_username = db.Column(db.String(128), default="")
    account_password = db.Column(db.String(128), default="")
    withdrawal_status = enum_column(WithdrawalStatus, nullable=False, default=WithdrawalStatus.NEW)
    withdrawal_question = db.Column(db.Text, nullable=True)
    is_draft = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
