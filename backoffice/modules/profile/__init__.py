# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify

from ...activity import log_ctx
from ...errors import ValidationFailed
from ...extensions import db
from ...models import Employee, RoleEarning, SalaryCalculation, User
from ...schemas import ChangePasswordIn, UsdtIn, body
from ...security import roles_required

bp = Blueprint("profile", __name__, url_prefix="/profile")


@bp.put("/usdt")
@roles_required()
def update_usdt(ctx):
    data = body(UsdtIn)
    u = db.session.get(User, ctx.user_id)
    u.usdt_address = data.usdt_address
    u.usdt_network = data.usdt_network
    db.session.commit()
    log_ctx(ctx, "usdt_updated", {"network": data.usdt_network.value})
    return jsonify({"success": True, "usdt_address": u.usdt_address, "usdt_network": u.usdt_network.value})


@bp.post("/change-password")
@roles_required()
def change_password(ctx):
    data = body(ChangePasswordIn)
    u = db.session.get(User, ctx.user_id)
    if not u.check_password(data.current_password):
        raise ValidationFailed("Текущий пароль неверен", [{"field": "current_password", "message": "неверный пароль"}])
    u.set_password(data.new_password)
    db.session.commit()
    log_ctx(ctx, "password_changed")
    return jsonify({"success": True})


@bp.get("/earnings-history")
@roles_required()
def earnings_history(ctx):
    history = []
    emp = Employee.query.filter_by(user_id=ctx.user_id).first()
    if emp is not None:
        for s in SalaryCalculation.query.filter_by(employee_id=emp.id).all():
            history.append({
                "month": s.month, "kind": "salary", "amount": float(s.total_salary or 0),
                "amount_usd": float(s.total_usd or 0), "status": s.status.value,
                "is_leader": s.is_leader, "paid_at": s.paid_at.isoformat() if s.paid_at else None,
            })
    for r in RoleEarning.query.filter_by(user_id=ctx.user_id).all():
        history.append({
            "month": r.month, "kind": f"role:{r.role.value}", "amount": float(r.earnings or 0),
            "amount_usd": float(r.earnings_usd or 0), "status": r.status.value,
            "is_leader": False, "paid_at": r.paid_at.isoformat() if r.paid_at else None,
        })
    history.sort(key=lambda h: h["month"], reverse=True)
    total_paid = sum(h["amount"] for h in history if h["status"] == "paid")
    return jsonify({"history": history, "total_paid": round(total_paid, 2)})
