# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify

from ...activity import log_ctx
from ...errors import StateConflict
from ...extensions import db
from ...models import Casino
from ...schemas import CasinoIn, body
from ...security import roles_required

bp = Blueprint("casinos", __name__)


@bp.get("/casinos")
@roles_required("casinos", "read")
def list_casinos(ctx):
    rows = Casino.query.filter_by(is_active=True).order_by(Casino.name).all()
    return jsonify({"casinos": [c.to_dict() for c in rows]})


@bp.post("/casinos")
@roles_required("casinos", "write")
def create_casino(ctx):
    data = body(CasinoIn)
    if Casino.query.filter_by(name=data.name).first() is not None:
        raise StateConflict("Казино с таким названием уже есть")
    casino = Casino(name=data.name, url=data.url, currency=data.currency)
    db.session.add(casino)
    db.session.commit()
    log_ctx(ctx, "casino_created", {"casino_id": casino.id, "name": casino.name})
    return jsonify({"success": True, "casino": casino.to_dict()}), 201
