# -*- coding: utf-8 -*-
"""
Увольнение сотрудника. Все изменения (архив, деактивация, блок IP, отзыв карт,
закрытие сессий) идут одной транзакцией БД: либо всё, либо ничего.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ...acl import can_fire
from ...activity import log_ctx
from ...errors import AlreadyFired, Forbidden, NotFound
from ...extensions import db
from ...models import BlockedIP, Employee, FiredEmployeeArchive, SalaryCalculation, UserSession
from ...models.enums import Role
from ...schemas import FireIn
from ..cards.lifecycle import revoke_employee_cards

logger = logging.getLogger(__name__)


@dataclass
class FireResult:
    employee_id: int
    archived: bool
    ips_blocked: int
    cards_revoked: int
    sessions_closed: int


def _archive(emp: Employee, data: FireIn, actor_id: int, now: datetime) -> None:
    total = db.session.query(func.coalesce(func.sum(SalaryCalculation.total_salary), 0)) \
        .filter(SalaryCalculation.employee_id == emp.id).scalar()
    last = SalaryCalculation.query.filter_by(employee_id=emp.id) \
        .order_by(SalaryCalculation.month.desc()).first()
    user = emp.user
    db.session.add(FiredEmployeeArchive(
        employee_id=emp.id,
        username=user.username,
        full_name=user.full_name or "",
        role=Role(user.role).value,
        hire_date=emp.created_at,
        fire_date=now,
        fire_reason=data.reason,
        fired_by=actor_id,
        total_earned=total or 0,
        last_salary=last.total_salary if last else 0,
    ))


def _block_ips(user_id: int, employee_id: int, reason: str, actor_id: int) -> int:
    seen = {
        ip for (ip,) in db.session.query(UserSession.ip_address)
        .filter(UserSession.user_id == user_id, UserSession.ip_address.isnot(None))
        .distinct().all()
        if ip
    }
    already = {
        ip for (ip,) in db.session.query(BlockedIP.ip_address)
        .filter(BlockedIP.ip_address.in_(seen), BlockedIP.is_active.is_(True)).all()
    } if seen else set()
    fresh = sorted(seen - already)
    for ip in fresh:
        db.session.add(BlockedIP(
            ip_address=ip,
            blocked_reason=f"Увольнение: {reason}",
            related_employee_id=employee_id,
            blocked_by=actor_id,
        ))
    return len(fresh)


def fire_employee(ctx, employee_id: int, data: FireIn) -> FireResult:
    emp = db.session.get(Employee, employee_id)
    if emp is None:
        raise NotFound("Сотрудник не найден")
    if not emp.is_active:
        raise AlreadyFired()
    user = emp.user
    if not can_fire(ctx.role, Role(user.role), ctx.user_id, user.id):
        raise Forbidden("Недостаточно прав для увольнения этого сотрудника")

    now = datetime.utcnow()
    try:
        if data.archive_data:
            _archive(emp, data, ctx.user_id, now)

        emp.is_active = False
        emp.fired_at = now
        emp.fired_by = ctx.user_id
        emp.fire_reason = data.reason
        emp.last_working_day = data.last_working_day or date.today()
        user.is_active = False
        user.fired_date = date.today()

        ips = _block_ips(user.id, emp.id, data.reason, ctx.user_id) if data.block_ips else 0
        cards = revoke_employee_cards(emp.id) if data.revoke_cards else 0
        sessions = UserSession.query.filter_by(user_id=user.id).delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("fire employee %s failed, rolled back", employee_id)
        raise

    result = FireResult(emp.id, data.archive_data, ips, cards, sessions)
    logger.info("employee %s fired by %s: %s", emp.id, ctx.username, result)
    log_ctx(ctx, "employee_fired", {
        **asdict(result), "username": user.username, "reason": data.reason,
    })
    return result
