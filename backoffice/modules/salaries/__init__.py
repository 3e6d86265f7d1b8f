# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...activity import log_ctx
from ...periods import parse_month
from ...schemas import CalculateIn, PayIn, body
from ...security import roles_required
from . import engine

bp = Blueprint("salaries", __name__)


@bp.get("/salaries")
@roles_required("salaries", "read")
def list_salaries(ctx):
    month = parse_month(request.args.get("month"))
    return jsonify(engine.month_overview(month))


@bp.get("/salaries/stats")
@roles_required("salaries", "read")
def stats(ctx):
    month = parse_month(request.args.get("month"))
    return jsonify({"stats": engine.month_stats(month)})


@bp.post("/salaries/calculate")
@roles_required("salaries", "calculate")
def calculate(ctx):
    data = body(CalculateIn)
    result = engine.calculate(data.month, data.exchange_rate, actor_id=ctx.user_id)
    log_ctx(ctx, "salaries_calculated", result)
    return jsonify({"success": True, **result})


@bp.post("/salaries/pay")
@roles_required("salaries", "pay")
def pay(ctx):
    data = body(PayIn)
    result = engine.pay(data.month)
    log_ctx(ctx, "salaries_paid", result)
    return jsonify({"success": True, **result})
