# -*- coding: utf-8 -*-
from __future__ import annotations

from datetime import date, datetime

from flask import Blueprint, jsonify, request

from ...activity import log_ctx
from ...errors import InvalidState, NotFound, ValidationFailed
from ...extensions import db
from ...models import Card, Casino, Employee, Transaction, User
from ...models.enums import TRANSACTION_TRANSITIONS, TransactionStatus, TransactionType
from ...schemas import TransactionIn, TransactionStatusIn, body
from ...security import roles_required

bp = Blueprint("transactions", __name__)


def _date_arg(name: str) -> date | None:
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        raise ValidationFailed("Неверная дата", [{"field": name, "message": "Ожидается YYYY-MM-DD"}]) from None


def _enum_arg(name: str, enum_cls):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return enum_cls(raw)
    except ValueError:
        raise ValidationFailed("Неизвестное значение", [{"field": name, "message": raw}]) from None


@bp.get("/transactions")
@roles_required("transactions", "read")
def list_transactions(ctx):
    q = (
        db.session.query(Transaction, User.username, Casino.name)
        .join(Employee, Transaction.employee_id == Employee.id)
        .join(User, Employee.user_id == User.id)
        .join(Casino, Transaction.casino_id == Casino.id)
    )
    employee_id = request.args.get("employee_id", type=int)
    if employee_id:
        q = q.filter(Transaction.employee_id == employee_id)
    status = _enum_arg("status", TransactionStatus)
    if status is not None:
        q = q.filter(Transaction.status == status)
    tx_type = _enum_arg("type", TransactionType)
    if tx_type is not None:
        q = q.filter(Transaction.transaction_type == tx_type)
    start, end = _date_arg("start_date"), _date_arg("end_date")
    if start:
        q = q.filter(Transaction.transaction_date >= start)
    if end:
        q = q.filter(Transaction.transaction_date <= end)
    limit = min(request.args.get("limit", 200, type=int) or 200, 1000)

    out = []
    for t, username, casino_name in q.order_by(Transaction.transaction_date.desc(), Transaction.id.desc()).limit(limit):
        d = t.to_dict()
        d["employee_username"] = username
        d["casino_name"] = casino_name
        out.append(d)
    return jsonify({"transactions": out})


@bp.post("/transactions")
@roles_required("transactions", "write")
def create_transaction(ctx):
    data = body(TransactionIn)
    emp = db.session.get(Employee, data.employee_id)
    if emp is None:
        raise NotFound("Сотрудник не найден")
    if not emp.is_active:
        raise InvalidState("Сотрудник уволен")
    if db.session.get(Card, data.card_id) is None:
        raise NotFound("Карта не найдена")
    if db.session.get(Casino, data.casino_id) is None:
        raise NotFound("Казино не найдено")

    tx = Transaction(
        employee_id=data.employee_id,
        card_id=data.card_id,
        casino_id=data.casino_id,
        transaction_type=data.transaction_type,
        amount=data.amount,
        profit=data.profit,
        status=TransactionStatus.PENDING,
        transaction_date=data.transaction_date or date.today(),
        notes=data.notes,
        created_by=ctx.user_id,
    )
    db.session.add(tx)
    db.session.commit()
    log_ctx(ctx, "transaction_created", {
        "transaction_id": tx.id, "type": tx.transaction_type.value, "amount": float(tx.amount),
    })
    return jsonify({"success": True, "transaction": tx.to_dict()}), 201


@bp.put("/transactions/<int:tx_id>/status")
@roles_required("transactions", "status")
def change_status(ctx, tx_id: int):
    data = body(TransactionStatusIn)
    tx = db.session.get(Transaction, tx_id)
    if tx is None:
        raise NotFound("Транзакция не найдена")
    old = tx.status
    if data.status not in TRANSACTION_TRANSITIONS[old]:
        raise InvalidState(f"Переход {old.value} -> {data.status.value} недопустим")
    tx.status = data.status
    if data.status is TransactionStatus.COMPLETED:
        tx.completed_at = datetime.utcnow()
    db.session.commit()
    log_ctx(ctx, "transaction_status_changed", {"transaction_id": tx.id, "old": old.value, "new": tx.status.value})
    return jsonify({"success": True, "transaction": tx.to_dict()})
