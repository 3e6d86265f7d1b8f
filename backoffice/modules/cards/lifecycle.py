# -*- coding: utf-8 -*-
"""
Жизненный цикл карты: выпуск (с дневным лимитом розовых), назначение,
снятие, ручная смена статуса, удаление.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import text

from ...errors import InvalidState, LimitExceeded, NotFound
from ...extensions import db
from ...models import BankAccount, Card, Casino, Employee, Transaction
from ...models.enums import CARD_TRANSITIONS, CardStatus, CardType
from ...schemas import CardIn, CardUpdate

logger = logging.getLogger(__name__)

# списание розового лимита и проверка остатка одним оператором
_TAKE_PINK_SLOT = text("""
    UPDATE bank_accounts
    SET pink_cards_remaining = pink_cards_remaining - 1
    WHERE id = :id AND pink_cards_remaining > 0
""")


def get_card(card_id: int) -> Card:
    card = db.session.get(Card, card_id)
    if card is None:
        raise NotFound("Карта не найдена")
    return card


def create_card(data: CardIn, created_by: int | None) -> Card:
    if db.session.get(BankAccount, data.bank_account_id) is None:
        raise NotFound("Банковский счёт не найден")

    if data.card_type is CardType.PINK:
        res = db.session.execute(_TAKE_PINK_SLOT, {"id": data.bank_account_id})
        if res.rowcount != 1:
            db.session.rollback()
            raise LimitExceeded()

    card = Card(
        bank_account_id=data.bank_account_id,
        card_number=data.card_number,
        expiry_date=data.expiry_date,
        cvv=data.cvv,
        card_type=data.card_type,
        status=CardStatus.FREE,
        notes=data.notes,
        created_by=created_by,
    )
    db.session.add(card)
    db.session.commit()
    return card


def update_card(card: Card, data: CardUpdate) -> Card:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(card, field, value)
    db.session.commit()
    return card


def assign_cards(card_ids: list[int], employee_id: int, casino_id: int) -> list[Card]:
    employee = db.session.get(Employee, employee_id)
    if employee is None:
        raise NotFound("Сотрудник не найден")
    if not employee.is_active:
        raise InvalidState("Сотрудник уволен")
    casino = db.session.get(Casino, casino_id)
    if casino is None:
        raise NotFound("Казино не найдено")

    cards = Card.query.filter(Card.id.in_(card_ids)).all()
    missing = sorted(set(card_ids) - {c.id for c in cards})
    if missing:
        raise NotFound("Карты не найдены", {"card_ids": missing})
    blocked = [c.id for c in cards if c.status is CardStatus.BLOCKED]
    if blocked:
        raise InvalidState("Заблокированные карты нельзя назначать", {"card_ids": blocked})

    label = employee.user.display_name
    now = datetime.utcnow()
    for c in cards:
        # статус не трогаем: он меняется вручную
        c.assigned_employee_id = employee.id
        c.assigned_casino_id = casino.id
        c.assigned_to = label
        c.assigned_site = casino.name
        c.assigned_at = now
        c.times_assigned = (c.times_assigned or 0) + 1
    db.session.commit()
    return cards


def unassign_card(card: Card) -> Card:
    if card.status is not CardStatus.ASSIGNED:
        raise InvalidState("Карта не назначена", {"status": card.status.value})
    card.clear_assignment()
    card.status = CardStatus.FREE
    db.session.commit()
    return card


def change_status(card: Card, new: CardStatus) -> Card:
    old = card.status
    if new is old:
        return card
    if new not in CARD_TRANSITIONS[old]:
        raise InvalidState(f"Переход {old.value} -> {new.value} недопустим")
    if new in (CardStatus.FREE, CardStatus.BLOCKED):
        card.clear_assignment()
    card.status = new
    db.session.commit()
    return card


def delete_card(card: Card) -> None:
    if card.status is not CardStatus.FREE:
        raise InvalidState("Нельзя удалить карту в работе", {"status": card.status.value})
    if Transaction.query.filter_by(card_id=card.id).first() is not None:
        raise InvalidState("По карте есть транзакции")
    db.session.delete(card)
    db.session.commit()


def revoke_employee_cards(employee_id: int) -> int:
    """Блокирует все карты сотрудника (без commit, это часть увольнения)."""
    cards = Card.query.filter(
        Card.assigned_employee_id == employee_id,
        Card.status != CardStatus.BLOCKED,
    ).all()
    for c in cards:
        c.status = CardStatus.BLOCKED
        c.clear_assignment()
    return len(cards)
