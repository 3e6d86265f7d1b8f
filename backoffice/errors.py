# -*- coding: utf-8 -*-
"""
Ошибки API и их отображение в JSON.

Каждая ошибка несёт HTTP-статус и сообщение для клиента; внутренние детали
(трейсбеки, SQL, секреты) пишутся только в лог сервера.
"""
from __future__ import annotations

import logging
from typing import Any

from flask import jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from .extensions import db

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    message = "Внутренняя ошибка сервера"

    def __init__(self, message: str | None = None, details: Any = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


# --- 401 ---
class Unauthenticated(ApiError):
    status_code = 401
    message = "Требуется авторизация"

class NoToken(Unauthenticated):
    message = "Токен не передан"

class InvalidToken(Unauthenticated):
    message = "Недействительный токен"


# --- 403 / 404 ---
class Forbidden(ApiError):
    status_code = 403
    message = "Недостаточно прав"

class NotFound(ApiError):
    status_code = 404
    message = "Не найдено"


# --- 400 ---
class ValidationFailed(ApiError):
    status_code = 400
    message = "Неверные данные"

class StateConflict(ApiError):
    status_code = 400
    message = "Операция невозможна в текущем состоянии"

class LimitExceeded(StateConflict):
    message = "Дневной лимит розовых карт исчерпан"

class InvalidState(StateConflict):
    pass

class AlreadyFired(StateConflict):
    message = "Сотрудник уже уволен"

class NothingToPay(StateConflict):
    message = "Нет рассчитанных зарплат за этот месяц"


def validation_details(exc: ValidationError) -> list[dict[str, str]]:
    out = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "body"
        out.append({"field": field, "message": err.get("msg", "")})
    return out


def register_error_handlers(app) -> None:
    @app.errorhandler(ApiError)
    def _api_error(exc: ApiError):
        if exc.status_code >= 500:
            logger.error("api error: %s", exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(ValidationError)
    def _validation_error(exc: ValidationError):
        return jsonify({"error": ValidationFailed.message, "details": validation_details(exc)}), 400

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return jsonify({"error": exc.description or exc.name}), exc.code or 500

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        db.session.rollback()
        logger.exception("unhandled error")
        return jsonify({"error": ApiError.message}), 500
