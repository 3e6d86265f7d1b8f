# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...activity import log_ctx
from ...errors import NotFound, StateConflict
from ...extensions import db
from ...models import (
    ActivityLog, Card, Employee, SalaryCalculation, Transaction, User, UserSession, WorkEntry,
)
from ...schemas import EmployeeIn, EmployeeUpdate, FireIn, body
from ...security import roles_required
from .termination import fire_employee

bp = Blueprint("employees", __name__)


def _get(employee_id: int) -> Employee:
    emp = db.session.get(Employee, employee_id)
    if emp is None:
        raise NotFound("Сотрудник не найден")
    return emp


@bp.get("/employees")
@roles_required("employees", "read")
def list_employees(ctx):
    q = Employee.query.join(User, Employee.user_id == User.id)
    active = request.args.get("active")
    if active in ("1", "true"):
        q = q.filter(Employee.is_active.is_(True))
    elif active in ("0", "false"):
        q = q.filter(Employee.is_active.is_(False))
    rows = q.order_by(User.username).all()
    return jsonify({"employees": [e.to_dict() for e in rows]})


@bp.post("/employees")
@roles_required("employees", "create")
def create_employee(ctx):
    data = body(EmployeeIn)
    if User.query.filter_by(username=data.username).first() is not None:
        raise StateConflict("Пользователь с таким логином уже существует")
    u = User(
        username=data.username, full_name=data.full_name, email=data.email,
        role=data.role, hired_date=data.hired_date,
    )
    u.set_password(data.password)
    db.session.add(u)
    db.session.flush()
    emp = Employee(user_id=u.id, commission_rate=data.commission_rate)
    db.session.add(emp)
    db.session.commit()
    log_ctx(ctx, "employee_created", {"employee_id": emp.id, "username": u.username, "role": u.role.value})
    return jsonify({"success": True, "employee": emp.to_dict()}), 201


@bp.put("/employees/<int:employee_id>")
@roles_required("employees", "update")
def update_employee(ctx, employee_id: int):
    data = body(EmployeeUpdate)
    emp = _get(employee_id)
    changes = data.model_dump(exclude_unset=True)
    for field in ("full_name", "email", "hr_notes"):
        if field in changes:
            setattr(emp.user, field, changes[field])
    if "commission_rate" in changes:
        emp.commission_rate = changes["commission_rate"]
    db.session.commit()
    log_ctx(ctx, "employee_updated", {"employee_id": emp.id, "fields": sorted(changes)})
    return jsonify({"success": True, "employee": emp.to_dict()})


@bp.delete("/employees/<int:employee_id>")
@roles_required("employees", "delete")
def delete_employee(ctx, employee_id: int):
    emp = _get(employee_id)
    referenced = (
        Transaction.query.filter_by(employee_id=emp.id).first() is not None
        or Card.query.filter_by(assigned_employee_id=emp.id).first() is not None
        or SalaryCalculation.query.filter_by(employee_id=emp.id).first() is not None
    )
    if referenced:
        raise StateConflict("У сотрудника есть история: используйте увольнение вместо удаления")
    user = emp.user
    username = user.username
    db.session.delete(emp)
    UserSession.query.filter_by(user_id=user.id).delete(synchronize_session=False)
    has_history = (
        ActivityLog.query.filter_by(user_id=user.id).first() is not None
        or WorkEntry.query.filter_by(user_id=user.id).first() is not None
    )
    if has_history:
        user.is_active = False
    else:
        db.session.delete(user)
    db.session.commit()
    log_ctx(ctx, "employee_deleted", {"employee_id": employee_id, "username": username})
    return jsonify({"success": True})


@bp.post("/employees/<int:employee_id>/fire")
@roles_required("employees", "fire")
def fire(ctx, employee_id: int):
    data = body(FireIn)
    result = fire_employee(ctx, employee_id, data)
    return jsonify({
        "success": True,
        "employee_id": result.employee_id,
        "archived": result.archived,
        "ips_blocked": result.ips_blocked,
        "cards_revoked": result.cards_revoked,
        "sessions_closed": result.sessions_closed,
    })
