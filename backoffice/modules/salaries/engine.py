# -*- coding: utf-8 -*-
"""
Расчёт зарплат за месяц.

База месяца:
  расходы > 20% прибыли -> net (прибыль - расходы), иначе gross (прибыль).
Сотрудник:
  10% своей прибыли + 200 при прибыли > 200 + 10% лидеру месяца.
Руководящие роли:
  Manager 10%, HR 5%, CFO 5%, Admin 10%, Tester 10% от базы месяца.

Состояния строк: calculated -> paid. Оплаченные строки пересчёт не трогает.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import text

from ...errors import NothingToPay
from ...extensions import db
from ...models import Employee, RoleEarning, SalaryCalculation, SalarySummary, User
from ...models.base import D, money
from ...models.enums import CalculationBase, Role, SalaryStatus
from ...periods import month_bounds

logger = logging.getLogger(__name__)

BASE_RATE = Decimal("0.10")
PERFORMANCE_THRESHOLD = Decimal("200")
PERFORMANCE_BONUS = Decimal("200")
LEADER_RATE = Decimal("0.10")
NET_THRESHOLD_PCT = Decimal("20")

# процент от базы месяца
ROLE_PERCENT: dict[Role, Decimal] = {
    Role.MANAGER: Decimal("10"),
    Role.HR: Decimal("5"),
    Role.CFO: Decimal("5"),
    Role.ADMIN: Decimal("10"),
    # TODO: считать Tester от прибыли проверенных им казино, а не от всей базы
    Role.TESTER: Decimal("10"),
}


@dataclass(frozen=True)
class MonthBase:
    total_profit: Decimal
    total_expenses: Decimal
    expense_percentage: Decimal
    calculation_base: CalculationBase
    base_amount: Decimal


@dataclass(frozen=True)
class EmployeePay:
    profit: Decimal
    base_salary: Decimal
    performance_bonus: Decimal
    leader_bonus: Decimal
    is_leader: bool
    total: Decimal


def month_base(total_profit, total_expenses) -> MonthBase:
    profit, expenses = D(total_profit), D(total_expenses)
    pct = expenses / profit * 100 if profit != 0 else Decimal("0")
    if pct > NET_THRESHOLD_PCT:
        kind, base = CalculationBase.NET, profit - expenses
    else:
        kind, base = CalculationBase.GROSS, profit
    return MonthBase(money(profit), money(expenses), money(pct), kind, money(base))


def employee_pay(profit, max_profit) -> EmployeePay:
    profit, max_profit = D(profit), D(max_profit)
    base = profit * BASE_RATE
    performance = PERFORMANCE_BONUS if profit > PERFORMANCE_THRESHOLD else Decimal("0")
    # лидер только при положительной прибыли
    is_leader = max_profit > 0 and profit == max_profit
    leader = profit * LEADER_RATE if is_leader else Decimal("0")
    return EmployeePay(
        profit=money(profit),
        base_salary=money(base),
        performance_bonus=money(performance),
        leader_bonus=money(leader),
        is_leader=is_leader,
        total=money(base + performance + leader),
    )


def _lock_month(month: str) -> None:
    # SQLite сериализует писателей сам, в Postgres берём advisory lock на транзакцию
    if db.engine.dialect.name == "postgresql":
        db.session.execute(text("SELECT pg_advisory_xact_lock(hashtext(:k))"), {"k": f"salary:{month}"})


def _month_totals(month: str) -> tuple[Decimal, Decimal]:
    start, end = month_bounds(month)
    profit = db.session.execute(text("""
        SELECT COALESCE(SUM(profit), 0) FROM transactions
        WHERE profit IS NOT NULL AND transaction_date >= :s AND transaction_date < :e
    """), {"s": start.isoformat(), "e": end.isoformat()}).scalar()
    expenses = db.session.execute(
        text("SELECT COALESCE(SUM(amount_usd), 0) FROM expenses WHERE month = :m"), {"m": month}
    ).scalar()
    return D(profit), D(expenses)


def _profit_by_employee(month: str) -> dict[int, Decimal]:
    start, end = month_bounds(month)
    rows = db.session.execute(text("""
        SELECT e.id AS employee_id, COALESCE(SUM(t.profit), 0) AS profit
        FROM employees e
        LEFT JOIN transactions t
          ON t.employee_id = e.id
         AND t.profit IS NOT NULL
         AND t.transaction_date >= :s AND t.transaction_date < :e
        WHERE e.is_active = :active
        GROUP BY e.id
    """), {"s": start.isoformat(), "e": end.isoformat(), "active": True}).mappings().all()
    return {r["employee_id"]: money(r["profit"]) for r in rows}


def _upsert_summary(month: str, mb: MonthBase, rate: Decimal, actor_id: int | None) -> SalarySummary:
    summary = SalarySummary.query.filter_by(month=month).first()
    if summary is None:
        summary = SalarySummary(month=month)
        db.session.add(summary)
    summary.total_employees_profit = mb.total_profit
    summary.total_expenses = mb.total_expenses
    summary.expense_percentage = mb.expense_percentage
    summary.net_profit = money(mb.total_profit - mb.total_expenses)
    summary.calculation_base = mb.calculation_base
    summary.base_amount = mb.base_amount
    summary.exchange_rate = rate
    summary.calculated_by = actor_id
    summary.calculated_at = datetime.utcnow()
    return summary


def calculate(month: str, exchange_rate=None, actor_id: int | None = None) -> dict:
    rate = D(exchange_rate if exchange_rate is not None else current_app.config["USD_EXCHANGE_RATE"])
    now = datetime.utcnow()
    _lock_month(month)

    total_profit, total_expenses = _month_totals(month)
    mb = month_base(total_profit, total_expenses)
    _upsert_summary(month, mb, rate, actor_id)

    # --- сотрудники ---
    profits = _profit_by_employee(month)
    max_profit = max(profits.values(), default=Decimal("0"))
    existing = {r.employee_id: r for r in SalaryCalculation.query.filter_by(month=month).all()}
    written = skipped = 0
    for employee_id, profit in profits.items():
        row = existing.get(employee_id)
        if row is not None and row.status is SalaryStatus.PAID:
            skipped += 1
            continue
        pay = employee_pay(profit, max_profit)
        if row is None:
            row = SalaryCalculation(employee_id=employee_id, month=month)
            db.session.add(row)
        row.employee_profit = pay.profit
        row.base_salary = pay.base_salary
        row.performance_bonus = pay.performance_bonus
        row.leader_bonus = pay.leader_bonus
        row.is_leader = pay.is_leader
        row.total_salary = pay.total
        row.total_usd = money(pay.total * rate)
        row.status = SalaryStatus.CALCULATED
        row.calculated_at = now
        row.paid_at = None
        written += 1

    # неоплаченные строки уволенных с прошлого расчёта больше не действительны
    stale = SalaryCalculation.query.filter(
        SalaryCalculation.month == month,
        SalaryCalculation.status == SalaryStatus.CALCULATED,
        SalaryCalculation.employee_id.notin_(list(profits)),
    ).delete(synchronize_session=False)

    # --- роли ---
    role_users = User.query.filter(User.is_active.is_(True), User.role.in_(list(ROLE_PERCENT))).all()
    existing_roles = {(r.user_id, r.role): r for r in RoleEarning.query.filter_by(month=month).all()}
    roles_written = 0
    for u in role_users:
        role = Role(u.role)
        row = existing_roles.get((u.id, role))
        if row is not None and row.status is SalaryStatus.PAID:
            skipped += 1
            continue
        pct = ROLE_PERCENT[role]
        earnings = money(mb.base_amount * pct / 100)
        if row is None:
            row = RoleEarning(user_id=u.id, role=role, month=month)
            db.session.add(row)
        row.percentage = pct
        row.base_amount = mb.base_amount
        row.earnings = earnings
        row.earnings_usd = money(earnings * rate)
        row.status = SalaryStatus.CALCULATED
        row.calculated_at = now
        row.paid_at = None
        roles_written += 1

    current_roles = {(u.id, Role(u.role)) for u in role_users}
    for key, row in existing_roles.items():
        if key not in current_roles and row.status is SalaryStatus.CALCULATED:
            db.session.delete(row)
            stale += 1

    db.session.commit()
    logger.info(
        "salary %s: profit=%s expenses=%s base=%s(%s) employees=%d roles=%d skipped_paid=%d removed=%d",
        month, mb.total_profit, mb.total_expenses, mb.base_amount, mb.calculation_base.value,
        written, roles_written, skipped, stale,
    )
    return {
        "month": month,
        "total_employees_profit": float(mb.total_profit),
        "total_expenses": float(mb.total_expenses),
        "expense_percentage": float(mb.expense_percentage),
        "calculation_base": mb.calculation_base.value,
        "base_amount": float(mb.base_amount),
        "exchange_rate": float(rate),
        "employees_calculated": written,
        "roles_calculated": roles_written,
        "skipped_paid": skipped,
        "removed_stale": stale,
    }


def pay(month: str) -> dict:
    now = datetime.utcnow()
    _lock_month(month)
    employees = SalaryCalculation.query.filter_by(month=month, status=SalaryStatus.CALCULATED) \
        .update({"status": SalaryStatus.PAID, "paid_at": now}, synchronize_session=False)
    roles = RoleEarning.query.filter_by(month=month, status=SalaryStatus.CALCULATED) \
        .update({"status": SalaryStatus.PAID, "paid_at": now}, synchronize_session=False)
    if employees + roles == 0:
        db.session.rollback()
        raise NothingToPay()
    db.session.commit()
    logger.info("salary %s paid: employees=%d roles=%d", month, employees, roles)
    return {"month": month, "employees_paid": employees, "roles_paid": roles}


def month_overview(month: str) -> dict:
    summary = SalarySummary.query.filter_by(month=month).first()
    rows = (
        db.session.query(SalaryCalculation, User.username, User.full_name)
        .join(Employee, SalaryCalculation.employee_id == Employee.id)
        .join(User, Employee.user_id == User.id)
        .filter(SalaryCalculation.month == month)
        .order_by(SalaryCalculation.total_salary.desc())
        .all()
    )
    employees = []
    for calc, username, full_name in rows:
        d = calc.to_dict()
        d["username"] = username
        d["full_name"] = full_name
        employees.append(d)
    role_rows = (
        db.session.query(RoleEarning, User.username)
        .join(User, RoleEarning.user_id == User.id)
        .filter(RoleEarning.month == month)
        .order_by(RoleEarning.role, User.username)
        .all()
    )
    roles = []
    for r, username in role_rows:
        d = r.to_dict()
        d["username"] = username
        roles.append(d)
    return {
        "month": month,
        "summary": summary.to_dict() if summary else None,
        "salaries": employees,
        "role_earnings": roles,
    }


def month_stats(month: str) -> dict:
    total_profit, total_expenses = _month_totals(month)
    mb = month_base(total_profit, total_expenses)
    employees_total = db.session.execute(text("SELECT COUNT(*) FROM employees")).scalar() or 0
    employees_active = db.session.execute(
        text("SELECT COUNT(*) FROM employees WHERE is_active = :a"), {"a": True}
    ).scalar() or 0
    pending = db.session.execute(text("""
        SELECT COUNT(*) AS cnt, COALESCE(SUM(total_salary), 0) AS amount
        FROM salary_calculations WHERE month = :m AND status = :st
    """), {"m": month, "st": SalaryStatus.CALCULATED.value}).mappings().first()
    return {
        "month": month,
        "employees_total": int(employees_total),
        "employees_active": int(employees_active),
        "total_profit": float(mb.total_profit),
        "total_expenses": float(mb.total_expenses),
        "expense_percentage": float(mb.expense_percentage),
        "calculation_base": mb.calculation_base.value,
        "pending_salaries": int(pending["cnt"] or 0),
        "pending_amount": float(money(pending["amount"])),
    }
