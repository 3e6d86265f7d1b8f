# -*- coding: utf-8 -*-
"""
Сводки только для чтения: общий дашборд, отчёты за период, дашборд сотрудников.
"""
from __future__ import annotations

from datetime import date, datetime

from flask import Blueprint, jsonify, request
from sqlalchemy import text

from ...errors import ValidationFailed
from ...extensions import db
from ...models.base import money, plain
from ...models.enums import TransactionStatus
from ...periods import current_month, month_bounds, time_to_month_end
from ...security import roles_required

bp = Blueprint("reports", __name__)

REPORT_TYPES = ("summary", "transactions", "cards")


def _rows(sql: str, params: dict | None = None) -> list[dict]:
    return [
        {k: plain(v) for k, v in r.items()}
        for r in db.session.execute(text(sql), params or {}).mappings().all()
    ]


def _scalar(sql: str, params: dict | None = None):
    return db.session.execute(text(sql), params or {}).scalar()


def _amount(v) -> float:
    return float(money(v or 0))


def _period() -> tuple[str, str]:
    def parse(name: str, default: date) -> date:
        raw = request.args.get(name)
        if not raw:
            return default
        try:
            return date.fromisoformat(raw[:10])
        except ValueError:
            raise ValidationFailed("Неверная дата", [{"field": name, "message": "Ожидается YYYY-MM-DD"}]) from None

    start = parse("startDate", date(2000, 1, 1))
    end = parse("endDate", date.today())
    if start > end:
        raise ValidationFailed("Начало периода позже конца", [{"field": "startDate", "message": "startDate > endDate"}])
    return start.isoformat(), end.isoformat()


# ---------- общий дашборд ----------
@bp.get("/dashboard")
@roles_required("dashboard", "read")
def dashboard(ctx):
    summary = {
        "banks": _scalar("SELECT COUNT(*) FROM banks"),
        "bank_accounts": _scalar("SELECT COUNT(*) FROM bank_accounts"),
        "cards": _scalar("SELECT COUNT(*) FROM cards"),
        "transactions": _scalar("SELECT COUNT(*) FROM transactions"),
        "employees": _scalar("SELECT COUNT(*) FROM employees WHERE is_active = :a", {"a": True}),
        "casinos": _scalar("SELECT COUNT(*) FROM casinos WHERE is_active = :a", {"a": True}),
        "total_profit": _amount(_scalar("SELECT COALESCE(SUM(profit), 0) FROM transactions WHERE profit IS NOT NULL")),
    }
    cards_by_status = {
        r["status"]: r["cnt"]
        for r in _rows("SELECT status, COUNT(*) AS cnt FROM cards GROUP BY status")
    }
    tx_by_type = {
        r["transaction_type"]: r["cnt"]
        for r in _rows("SELECT transaction_type, COUNT(*) AS cnt FROM transactions GROUP BY transaction_type")
    }
    tx_by_status = {
        r["status"]: r["cnt"]
        for r in _rows("SELECT status, COUNT(*) AS cnt FROM transactions GROUP BY status")
    }
    recent = _rows("""
        SELECT t.id, t.transaction_type, t.amount, t.profit, t.status, t.transaction_date,
               u.username AS employee_username, c.name AS casino_name
        FROM transactions t
        JOIN employees e ON e.id = t.employee_id
        JOIN users u ON u.id = e.user_id
        JOIN casinos c ON c.id = t.casino_id
        ORDER BY t.created_at DESC, t.id DESC
        LIMIT 10
    """)
    return jsonify({
        "summary": summary,
        "cards_by_status": cards_by_status,
        "transactions_by_type": tx_by_type,
        "transactions_by_status": tx_by_status,
        "recent_transactions": recent,
    })


# ---------- отчёты ----------
def _summary_report(start: str, end: str) -> dict:
    p = {"s": start, "e": end}
    totals = db.session.execute(text("""
        SELECT COUNT(*) AS cnt,
               COALESCE(SUM(CASE WHEN transaction_type = 'deposit' THEN amount ELSE 0 END), 0) AS deposits,
               COALESCE(SUM(CASE WHEN transaction_type = 'withdrawal' THEN amount ELSE 0 END), 0) AS withdrawals,
               COALESCE(SUM(profit), 0) AS profit
        FROM transactions
        WHERE transaction_date >= :s AND transaction_date <= :e
    """), p).mappings().first()
    by_employee = _rows("""
        SELECT u.username, COUNT(t.id) AS transactions, COALESCE(SUM(t.profit), 0) AS profit
        FROM transactions t
        JOIN employees e ON e.id = t.employee_id
        JOIN users u ON u.id = e.user_id
        WHERE t.transaction_date >= :s AND t.transaction_date <= :e
        GROUP BY u.username
        ORDER BY profit DESC
    """, p)
    for r in by_employee:
        r["profit"] = _amount(r["profit"])
    return {
        "transactions": totals["cnt"],
        "deposits": _amount(totals["deposits"]),
        "withdrawals": _amount(totals["withdrawals"]),
        "profit": _amount(totals["profit"]),
        "by_employee": by_employee,
    }


def _transactions_report(start: str, end: str) -> dict:
    rows = _rows("""
        SELECT t.id, t.transaction_date, t.transaction_type, t.amount, t.profit, t.status,
               u.username AS employee_username, c.name AS casino_name, cd.card_number
        FROM transactions t
        JOIN employees e ON e.id = t.employee_id
        JOIN users u ON u.id = e.user_id
        JOIN casinos c ON c.id = t.casino_id
        JOIN cards cd ON cd.id = t.card_id
        WHERE t.transaction_date >= :s AND t.transaction_date <= :e
        ORDER BY t.transaction_date DESC, t.id DESC
    """, {"s": start, "e": end})
    return {"transactions": rows, "count": len(rows)}


def _cards_report() -> dict:
    by_bank = _rows("""
        SELECT b.name AS bank_name, cd.status, cd.card_type, COUNT(*) AS cnt
        FROM cards cd
        JOIN bank_accounts a ON a.id = cd.bank_account_id
        JOIN banks b ON b.id = a.bank_id
        GROUP BY b.name, cd.status, cd.card_type
        ORDER BY b.name
    """)
    most_used = _rows("""
        SELECT id, card_number, card_type, status, times_assigned, assigned_to
        FROM cards ORDER BY times_assigned DESC, id LIMIT 20
    """)
    return {"by_bank": by_bank, "most_used": most_used}


@bp.get("/reports")
@roles_required("reports", "read")
def reports(ctx):
    kind = request.args.get("type", "summary")
    if kind not in REPORT_TYPES:
        raise ValidationFailed("Неизвестный тип отчёта", [{"field": "type", "message": f"одно из {', '.join(REPORT_TYPES)}"}])
    start, end = _period()
    if kind == "summary":
        data = _summary_report(start, end)
    elif kind == "transactions":
        data = _transactions_report(start, end)
    else:
        data = _cards_report()
    return jsonify({"type": kind, "period": {"start": start, "end": end}, "report": data})


# ---------- дашборд сотрудников ----------
@bp.get("/employee/dashboard")
@roles_required("employee_dashboard", "read")
def employee_dashboard(ctx):
    month = current_month()
    start, end = month_bounds(month)
    p = {"s": start.isoformat(), "e": end.isoformat(), "st": TransactionStatus.COMPLETED.value}
    month_filter = "t.status = :st AND t.transaction_date >= :s AND t.transaction_date < :e"

    total_profit = _scalar(f"SELECT COALESCE(SUM(t.profit), 0) FROM transactions t WHERE {month_filter}", p)
    leaders = _rows(f"""
        SELECT e.id AS employee_id, u.username, u.full_name,
               COALESCE(SUM(t.profit), 0) AS profit, COUNT(t.id) AS transactions
        FROM transactions t
        JOIN employees e ON e.id = t.employee_id
        JOIN users u ON u.id = e.user_id
        WHERE {month_filter}
        GROUP BY e.id, u.username, u.full_name
        ORDER BY profit DESC
        LIMIT 5
    """, p)
    casinos = _rows(f"""
        SELECT c.id AS casino_id, c.name, COALESCE(SUM(t.profit), 0) AS profit, COUNT(t.id) AS transactions
        FROM transactions t
        JOIN casinos c ON c.id = t.casino_id
        WHERE {month_filter}
        GROUP BY c.id, c.name
        ORDER BY profit DESC
        LIMIT 5
    """, p)
    top_tx = _rows(f"""
        SELECT t.id, t.amount, t.profit, t.transaction_date, u.username, c.name AS casino_name
        FROM transactions t
        JOIN employees e ON e.id = t.employee_id
        JOIN users u ON u.id = e.user_id
        JOIN casinos c ON c.id = t.casino_id
        WHERE {month_filter} AND t.profit IS NOT NULL
        ORDER BY t.profit DESC
        LIMIT 5
    """, p)
    recent = _rows(f"""
        SELECT t.id, t.amount, t.profit, t.created_at, t.completed_at, u.username, c.name AS casino_name
        FROM transactions t
        JOIN employees e ON e.id = t.employee_id
        JOIN users u ON u.id = e.user_id
        JOIN casinos c ON c.id = t.casino_id
        WHERE {month_filter}
        ORDER BY t.completed_at DESC, t.id DESC
        LIMIT 10
    """, p)
    for r in leaders + casinos:
        r["profit"] = _amount(r["profit"])
    for r in recent:
        r["minutes_to_withdrawal"] = _minutes_between(r.get("created_at"), r.get("completed_at"))

    return jsonify({
        "month": month,
        "total_profit": _amount(total_profit),
        "leaders": leaders,
        "top_casinos": casinos,
        "top_transactions": top_tx,
        "recent_completed": recent,
        "time_to_month_end": time_to_month_end(),
    })


def _minutes_between(a, b) -> int | None:
    if not a or not b:
        return None
    try:
        t0, t1 = datetime.fromisoformat(str(a)), datetime.fromisoformat(str(b))
    except ValueError:
        return None
    return int((t1 - t0).total_seconds() // 60)
