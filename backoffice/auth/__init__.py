# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request

from ..activity import log_activity, log_ctx
from ..errors import Unauthenticated
from ..extensions import db
from ..models import User, UserSession
from ..schemas import LoginIn, body
from ..security import client_ip, decode_token, extract_token, open_session, roles_required

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

PUBLIC_FIELDS = ("id", "username", "email", "full_name", "role", "usdt_address", "usdt_network", "last_login")


def public_user(u: User) -> dict:
    d = u.to_dict()
    return {k: d.get(k) for k in PUBLIC_FIELDS}


@auth_bp.post("/auth/login")
def login():
    data = body(LoginIn)
    ip, ua = client_ip(), request.headers.get("User-Agent")
    u = User.query.filter_by(username=data.username).first()
    if not u or not u.is_active or not u.check_password(data.password):
        logger.info("login failed for %r from %s", data.username, ip)
        log_activity(u.id if u else None, "login_failed", {"username": data.username}, ip, ua)
        raise Unauthenticated("Неверный логин или пароль")

    token = open_session(u, ip, ua)
    u.last_login = datetime.utcnow()
    db.session.commit()
    log_activity(u.id, "login_success", {"username": u.username}, ip, ua)

    cfg = current_app.config
    resp = jsonify({"success": True, "user": public_user(u), "token": token})
    resp.set_cookie(
        cfg["AUTH_COOKIE_NAME"], token,
        max_age=cfg["TOKEN_TTL_HOURS"] * 3600,
        httponly=True, samesite="Lax", secure=cfg["AUTH_COOKIE_SECURE"],
    )
    return resp


@auth_bp.post("/auth/logout")
@roles_required()
def logout(ctx):
    claims = decode_token(extract_token())
    UserSession.query.filter_by(token_id=claims["jti"]).delete()
    db.session.commit()
    log_ctx(ctx, "logout")
    resp = jsonify({"success": True})
    resp.delete_cookie(current_app.config["AUTH_COOKIE_NAME"])
    return resp


@auth_bp.get("/auth/me")
@roles_required()
def me(ctx):
    u = db.session.get(User, ctx.user_id)
    return jsonify({"user": public_user(u)})


@auth_bp.get("/session")
@roles_required()
def session_info(ctx):
    return jsonify({
        "authenticated": True,
        "user": {"id": ctx.user_id, "username": ctx.username, "role": ctx.role.value},
    })
