# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...activity import log_ctx
from ...errors import NotFound, ValidationFailed
from ...extensions import db
from ...models import Casino, TestSite
from ...models.enums import TestSiteStatus
from ...schemas import TestSiteIn, TestSiteStatusIn, body
from ...security import roles_required

bp = Blueprint("test_sites", __name__)


@bp.get("/test-sites")
@roles_required("test_sites", "read")
def list_sites(ctx):
    q = TestSite.query
    status = request.args.get("status")
    if status:
        try:
            q = q.filter(TestSite.status == TestSiteStatus(status))
        except ValueError:
            raise ValidationFailed("Неизвестный статус", [{"field": "status", "message": status}]) from None
    return jsonify({"test_sites": [s.to_dict() for s in q.order_by(TestSite.created_at.desc()).all()]})


@bp.post("/test-sites")
@roles_required("test_sites", "write")
def create_site(ctx):
    data = body(TestSiteIn)
    if data.casino_id is not None and db.session.get(Casino, data.casino_id) is None:
        raise NotFound("Казино не найдено")
    site = TestSite(**data.model_dump(), created_by=ctx.user_id)
    db.session.add(site)
    db.session.commit()
    log_ctx(ctx, "test_site_created", {"test_site_id": site.id, "casino_name": site.casino_name})
    return jsonify({"success": True, "test_site": site.to_dict()}), 201


@bp.put("/test-sites/<int:site_id>/status")
@roles_required("test_sites", "status")
def change_status(ctx, site_id: int):
    data = body(TestSiteStatusIn)
    site = db.session.get(TestSite, site_id)
    if site is None:
        raise NotFound("Тестовый сайт не найден")
    old = site.status.value
    site.status = data.status
    db.session.commit()
    log_ctx(ctx, "test_site_status_changed", {"test_site_id": site.id, "old_status": old,
                                              "new_status": site.status.value})
    return jsonify({"success": True, "test_site": site.to_dict()})
