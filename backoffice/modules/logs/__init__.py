# -*- coding: utf-8 -*-
from __future__ import annotations

from datetime import datetime, timedelta

from flask import Blueprint, jsonify, request

from ...activity import log_ctx
from ...errors import ValidationFailed
from ...extensions import db
from ...models import ActivityLog, User
from ...schemas import LogIn, body
from ...security import roles_required

bp = Blueprint("logs", __name__)

MAX_LIMIT = 500
CLIENT_PREFIX = "client:"


def _day(name: str) -> datetime | None:
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw[:10])
    except ValueError:
        raise ValidationFailed("Неверная дата", [{"field": name, "message": "Ожидается YYYY-MM-DD"}]) from None


@bp.get("/logs")
@roles_required("logs", "read")
def list_logs(ctx):
    q = db.session.query(ActivityLog, User.username).outerjoin(User, ActivityLog.user_id == User.id)
    user_id = request.args.get("user_id", type=int)
    if user_id:
        q = q.filter(ActivityLog.user_id == user_id)
    action = request.args.get("action")
    if action:
        q = q.filter(ActivityLog.action == action)
    start, end = _day("start_date"), _day("end_date")
    if start:
        q = q.filter(ActivityLog.created_at >= start)
    if end:
        # включительно по дню
        q = q.filter(ActivityLog.created_at < end + timedelta(days=1))
    limit = max(1, min(request.args.get("limit", 100, type=int) or 100, MAX_LIMIT))
    rows = q.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()
    out = []
    for log, username in rows:
        d = log.to_dict()
        d["username"] = username
        out.append(d)
    return jsonify({"logs": out})


@bp.post("/logs")
@roles_required()
def write_log(ctx):
    data = body(LogIn)
    # клиентские события не должны совпадать с серверными (employee_fired и т.п.)
    log_ctx(ctx, f"{CLIENT_PREFIX}{data.action}", data.details)
    return jsonify({"success": True}), 201
