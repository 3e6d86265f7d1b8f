from datetime import datetime
from ..extensions import db
from .base import SerializerMixin, enum_column
from .enums import CalculationBase, Role, SalaryStatus


class Expense(db.Model, SerializerMixin):
    __tablename__ = "expenses"

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), default="other")
    amount_usd = db.Column(db.Numeric(12, 2), nullable=False)
    expense_date = db.Column(db.Date, nullable=False)
    month = db.Column(db.String(7), nullable=False, index=True)  # YYYY-MM
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class SalarySummary(db.Model, SerializerMixin):
    """Шапка расчёта за месяц."""
    __tablename__ = "salary_summaries"

    id = db.Column(db.Integer, primary_key=True)
    month = db.Column(db.String(7), unique=True, nullable=False)
    total_employees_profit = db.Column(db.Numeric(12, 2), default=0)
    total_expenses = db.Column(db.Numeric(12, 2), default=0)
    expense_percentage = db.Column(db.Numeric(7, 2), default=0)
    net_profit = db.Column(db.Numeric(12, 2), default=0)
    calculation_base = enum_column(CalculationBase, nullable=False, default=CalculationBase.GROSS)
    base_amount = db.Column(db.Numeric(12, 2), default=0)
    exchange_rate = db.Column(db.Numeric(12, 4), default=1)
    calculated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    calculated_at = db.Column(db.DateTime, default=datetime.utcnow)


class SalaryCalculation(db.Model, SerializerMixin):
    __tablename__ = "salary_calculations"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    month = db.Column(db.String(7), nullable=False, index=True)
    employee_profit = db.Column(db.Numeric(12, 2), default=0)
    base_salary = db.Column(db.Numeric(12, 2), default=0)
    performance_bonus = db.Column(db.Numeric(12, 2), default=0)
    leader_bonus = db.Column(db.Numeric(12, 2), default=0)
    is_leader = db.Column(db.Boolean, default=False, nullable=False)
    total_salary = db.Column(db.Numeric(12, 2), default=0)
    total_usd = db.Column(db.Numeric(12, 2), default=0)
    status = enum_column(SalaryStatus, nullable=False, default=SalaryStatus.CALCULATED)
    calculated_at = db.Column(db.DateTime, default=datetime.utcnow)
    paid_at = db.Column(db.DateTime, nullable=True)
    __table_args__ = (db.UniqueConstraint("employee_id", "month", name="uq_salary_employee_month"),)


class RoleEarning(db.Model, SerializerMixin):
    """Доля руководящих ролей от базы месяца."""
    __tablename__ = "role_earnings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    role = enum_column(Role, nullable=False)
    month = db.Column(db.String(7), nullable=False, index=True)
    percentage = db.Column(db.Numeric(5, 2), default=0)
    base_amount = db.Column(db.Numeric(12, 2), default=0)
    earnings = db.Column(db.Numeric(12, 2), default=0)
    earnings_usd = db.Column(db.Numeric(12, 2), default=0)
    status = enum_column(SalaryStatus, nullable=False, default=SalaryStatus.CALCULATED)
    calculated_at = db.Column(db.DateTime, default=datetime.utcnow)
    paid_at = db.Column(db.DateTime, nullable=True)
    __table_args__ = (db.UniqueConstraint("user_id", "role", "month", name="uq_role_earning"),)
