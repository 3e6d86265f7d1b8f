# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...activity import log_ctx
from ...extensions import db
from ...models import Expense
from ...models.base import money
from ...periods import month_of, parse_month
from ...schemas import ExpenseIn, body
from ...security import roles_required

bp = Blueprint("expenses", __name__)


@bp.get("/expenses")
@roles_required("expenses", "read")
def list_expenses(ctx):
    q = Expense.query
    if request.args.get("month"):
        q = q.filter(Expense.month == parse_month(request.args.get("month")))
    category = request.args.get("category")
    if category:
        q = q.filter(Expense.category == category)
    rows = q.order_by(Expense.expense_date.desc(), Expense.id.desc()).all()
    total = money(sum((money(e.amount_usd) for e in rows), money(0)))
    return jsonify({
        "expenses": [e.to_dict() for e in rows],
        "total": float(total),
        "count": len(rows),
    })


@bp.post("/expenses")
@roles_required("expenses", "write")
def create_expense(ctx):
    data = body(ExpenseIn)
    e = Expense(
        description=data.description,
        category=data.category or "other",
        amount_usd=data.amount_usd,
        expense_date=data.expense_date,
        month=month_of(data.expense_date),
        created_by=ctx.user_id,
    )
    db.session.add(e)
    db.session.commit()
    log_ctx(ctx, "expense_created", {"expense_id": e.id, "amount_usd": float(e.amount_usd), "month": e.month})
    return jsonify({"success": True, "expense": e.to_dict()}), 201
