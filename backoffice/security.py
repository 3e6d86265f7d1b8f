# -*- coding: utf-8 -*-
"""
Аутентификация по JWT (cookie auth-token или Authorization: Bearer)
и проверка прав через acl. Вьюхи получают RequestContext первым аргументом.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any

import jwt
from flask import current_app, request
from flask_login import current_user

from .acl import allowed
from .errors import Forbidden, InvalidToken, NoToken
from .extensions import db, login_manager
from .models import BlockedIP, User, UserSession
from .models.enums import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    user_id: int
    username: str
    role: Role
    ip: str | None
    user_agent: str | None


# ---------- токены ----------
def issue_token(user: User) -> tuple[str, str, datetime]:
    now = datetime.now(timezone.utc)
    expires = now + timedelta(hours=current_app.config["TOKEN_TTL_HOURS"])
    jti = uuid.uuid4().hex
    payload: dict[str, Any] = {
        "userId": user.id,
        "username": user.username,
        "role": Role(user.role).value,
        "iat": now,
        "exp": expires,
        "jti": jti,
    }
    token = jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=current_app.config["JWT_ALGORITHM"])
    return token, jti, expires.replace(tzinfo=None)


def decode_token(token: str) -> dict[str, Any]:
    try:
        claims = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["exp", "iat", "jti"]},
        )
    except jwt.InvalidTokenError as e:  # ExpiredSignatureError тоже сюда
        raise InvalidToken() from e
    if not isinstance(claims.get("userId"), int):
        raise InvalidToken()
    return claims


def extract_token(req=None) -> str | None:
    req = req or request
    token = req.cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    if token:
        return token
    header = req.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[7:].strip() or None
    return None


def client_ip(req=None) -> str | None:
    # X-Forwarded-For разбирает ProxyFix, и только от доверенных прокси (TRUSTED_PROXIES)
    return (req or request).remote_addr


def open_session(user: User, ip: str | None = None, user_agent: str | None = None) -> str:
    """Выдаёт токен и пишет строку сессии (без commit)."""
    token, jti, expires = issue_token(user)
    db.session.add(UserSession(
        user_id=user.id, token_id=jti, ip_address=ip,
        user_agent=(user_agent or "")[:256], expires_at=expires,
    ))
    return token


# ---------- Flask-Login ----------
@login_manager.request_loader
def load_user_from_request(req):
    token = extract_token(req)
    if not token:
        return None
    try:
        claims = decode_token(token)
    except InvalidToken:
        logger.debug("rejected token from %s", client_ip(req))
        return None
    sess = UserSession.query.filter_by(token_id=claims["jti"], user_id=claims["userId"]).first()
    if sess is None or sess.expires_at < datetime.utcnow():
        return None
    user = db.session.get(User, claims["userId"])
    if user is None or not user.is_active:
        return None
    return user


def _authenticate() -> User:
    if current_user.is_authenticated:
        return current_user._get_current_object()
    if extract_token() is None:
        raise NoToken()
    raise InvalidToken()


def current_context() -> RequestContext:
    user = _authenticate()
    return RequestContext(
        user_id=user.id,
        username=user.username,
        role=Role(user.role),
        ip=client_ip(),
        user_agent=request.headers.get("User-Agent"),
    )


def roles_required(resource: str | None = None, operation: str = "read"):
    """
    Без токена -> 401. Роль не в матрице acl -> 403.
    resource=None: достаточно быть залогиненным.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            ctx = current_context()
            if resource is not None and not allowed(ctx.role, resource, operation):
                logger.info("forbidden: %s (%s) -> %s.%s", ctx.username, ctx.role.value, resource, operation)
                raise Forbidden()
            return f(ctx, *args, **kwargs)
        return wrapper
    return decorator


def reject_blocked_ip():
    ip = client_ip()
    if not ip:
        return None
    hit = BlockedIP.query.filter_by(ip_address=ip, is_active=True).first()
    if hit is not None:
        logger.warning("blocked ip %s tried %s", ip, request.path)
        raise Forbidden("Доступ с этого адреса заблокирован")
    return None
