# -*- coding: utf-8 -*-
"""
Управление пользователями (Admin/HR): список, создание, правка профиля и роли,
сброс пароля (только Admin). HR управляет только ролями ниже своей.
"""
from __future__ import annotations

from flask import Blueprint, jsonify, request

from .acl import outranks
from .activity import log_ctx
from .errors import Forbidden, NotFound, StateConflict, ValidationFailed
from .extensions import db
from .models import Employee, User
from .models.enums import WORKER_ROLES, Role
from .schemas import PasswordIn, UserIn, UserUpdate, body
from .security import roles_required

bp = Blueprint("admin_mgmt", __name__)


# ---------- helpers ----------
def _get_user(user_id: int) -> User:
    u = db.session.get(User, user_id)
    if u is None:
        raise NotFound("Пользователь не найден")
    return u


def _guard_rank(ctx, target_role: Role) -> None:
    if not outranks(ctx.role, target_role):
        raise Forbidden("Нельзя управлять пользователем с такой ролью")


def _user_out(u: User) -> dict:
    d = u.to_dict()
    emp = u.employee
    d["employee_id"] = emp.id if emp is not None else None
    return d


# ---------- users ----------
@bp.get("/users")
@roles_required("users", "read")
def list_users(ctx):
    q = User.query
    role = request.args.get("role")
    if role:
        try:
            q = q.filter(User.role == Role(role))
        except ValueError:
            raise ValidationFailed("Неизвестная роль", [{"field": "role", "message": role}]) from None
    if request.args.get("active") in ("1", "true"):
        q = q.filter(User.is_active.is_(True))
    return jsonify({"users": [_user_out(u) for u in q.order_by(User.username).all()]})


@bp.post("/users")
@roles_required("users", "write")
def create_user(ctx):
    data = body(UserIn)
    _guard_rank(ctx, data.role)
    if User.query.filter_by(username=data.username).first() is not None:
        raise StateConflict("Пользователь с таким логином уже существует")
    u = User(
        username=data.username, full_name=data.full_name, email=data.email,
        role=data.role, hr_notes=data.hr_notes,
    )
    u.set_password(data.password)
    db.session.add(u)
    db.session.flush()
    # запись Employee только для рабочих ролей
    if data.role in WORKER_ROLES:
        db.session.add(Employee(user_id=u.id, commission_rate=data.commission_rate))
    db.session.commit()
    log_ctx(ctx, "user_created", {"user_id": u.id, "username": u.username, "role": u.role.value})
    return jsonify({"success": True, "user": _user_out(u)}), 201


@bp.put("/users/<int:user_id>")
@roles_required("users", "write")
def update_user(ctx, user_id: int):
    data = body(UserUpdate)
    u = _get_user(user_id)
    current = Role(u.role)
    _guard_rank(ctx, current)
    changes = data.model_dump(exclude_unset=True)

    new_role = changes.pop("role", None)
    if new_role is not None and new_role is not current:
        _guard_rank(ctx, new_role)
        if current in WORKER_ROLES and new_role not in WORKER_ROLES:
            raise StateConflict("Сотрудника нельзя перевести в управляющую роль: создайте отдельного пользователя")
        if new_role in WORKER_ROLES and u.employee is None:
            db.session.add(Employee(user_id=u.id))
        u.role = new_role

    for field in ("full_name", "email", "hr_notes", "is_active"):
        if field in changes and changes[field] is not None:
            setattr(u, field, changes[field])
    if u.employee is not None and "is_active" in changes and changes["is_active"] is not None:
        u.employee.is_active = changes["is_active"]
    db.session.commit()
    log_ctx(ctx, "user_updated", {"user_id": u.id, "fields": sorted(data.model_fields_set)})
    return jsonify({"success": True, "user": _user_out(u)})


@bp.put("/users/<int:user_id>/password")
@roles_required("users", "password")
def set_password(ctx, user_id: int):
    data = body(PasswordIn)
    u = _get_user(user_id)
    u.set_password(data.password)
    db.session.commit()
    log_ctx(ctx, "password_reset", {"user_id": u.id})
    return jsonify({"success": True})
