# -*- coding: utf-8 -*-
"""
Рабочие записи сотрудников: свои видит и создаёт каждый,
чужие видят Manager/HR/Admin.
"""
from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...acl import allowed
from ...activity import log_ctx
from ...errors import Forbidden, NotFound
from ...extensions import db
from ...models import User, WorkEntry
from ...periods import current_month, parse_month
from ...schemas import WorkEntryIn, WorkStatusIn, body
from ...security import roles_required

bp = Blueprint("work_files", __name__)


def _can_see_all(ctx) -> bool:
    return allowed(ctx.role, "work_files", "read_all")


def _get_visible(ctx, entry_id: int) -> WorkEntry:
    entry = db.session.get(WorkEntry, entry_id)
    if entry is None:
        raise NotFound("Запись не найдена")
    if entry.user_id != ctx.user_id and not _can_see_all(ctx):
        raise Forbidden()
    return entry


@bp.get("/work-files")
@roles_required("work_files", "own")
def list_entries(ctx):
    q = db.session.query(WorkEntry, User.username).join(User, WorkEntry.user_id == User.id)
    if request.args.get("drafts") in ("1", "true"):
        q = q.filter(WorkEntry.user_id == ctx.user_id, WorkEntry.is_draft.is_(True))
    else:
        q = q.filter(WorkEntry.is_draft.is_(False))
        user_id = request.args.get("user_id", type=int)
        if not _can_see_all(ctx):
            q = q.filter(WorkEntry.user_id == ctx.user_id)
        elif user_id:
            q = q.filter(WorkEntry.user_id == user_id)
        if request.args.get("month"):
            q = q.filter(WorkEntry.month == parse_month(request.args.get("month")))
    out = []
    for e, username in q.order_by(WorkEntry.created_at.desc()).all():
        d = e.to_dict()
        d["username"] = username
        out.append(d)
    return jsonify({"work_files": out})


@bp.post("/work-files")
@roles_required("work_files", "own")
def create_entry(ctx):
    data = body(WorkEntryIn)
    fields = data.model_dump(exclude={"month"})
    entry = WorkEntry(user_id=ctx.user_id, month=data.month or current_month(), **fields)
    db.session.add(entry)
    db.session.commit()
    log_ctx(ctx, "work_entry_created", {"entry_id": entry.id, "casino": entry.casino_name,
                                        "draft": entry.is_draft})
    return jsonify({"success": True, "work_file": entry.to_dict()}), 201


@bp.put("/work-files/<int:entry_id>")
@roles_required("work_files", "edit")
def edit_entry(ctx, entry_id: int):
    data = body(WorkEntryIn)
    entry = _get_visible(ctx, entry_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        # null не затирает поле
        if value is not None:
            setattr(entry, field, value)
    db.session.commit()
    log_ctx(ctx, "work_entry_updated", {"entry_id": entry.id, "owner_id": entry.user_id})
    return jsonify({"success": True, "work_file": entry.to_dict()})


@bp.put("/work-files/<int:entry_id>/status")
@roles_required("work_files", "own")
def change_status(ctx, entry_id: int):
    data = body(WorkStatusIn)
    entry = _get_visible(ctx, entry_id)
    old = entry.withdrawal_status.value
    entry.withdrawal_status = data.withdrawal_status
    if data.withdrawal_question is not None:
        entry.withdrawal_question = data.withdrawal_question
    db.session.commit()
    log_ctx(ctx, "work_entry_status_changed", {"entry_id": entry.id, "old": old,
                                               "new": entry.withdrawal_status.value})
    return jsonify({"success": True, "work_file": entry.to_dict()})
