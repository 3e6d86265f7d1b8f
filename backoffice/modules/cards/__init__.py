# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request

from ...activity import log_ctx
from ...errors import ValidationFailed
from ...extensions import db
from ...models import BankAccount, Bank, Card
from ...models.enums import CardStatus, CardType
from ...schemas import AssignIn, CardIn, CardStatusIn, CardUpdate, body
from ...security import roles_required
from . import lifecycle

bp = Blueprint("cards", __name__)


def _card_out(card: Card, account: BankAccount | None = None, bank: Bank | None = None) -> dict:
    d = card.to_dict()
    if account is not None:
        d["account_name"] = account.account_name
    if bank is not None:
        d["bank_name"] = bank.name
    return d


@bp.get("/cards")
@roles_required("cards", "read")
def list_cards(ctx):
    q = (
        db.session.query(Card, BankAccount, Bank)
        .join(BankAccount, Card.bank_account_id == BankAccount.id)
        .join(Bank, BankAccount.bank_id == Bank.id)
    )
    status = request.args.get("status")
    if status:
        try:
            q = q.filter(Card.status == CardStatus(status))
        except ValueError:
            raise ValidationFailed("Неизвестный статус карты", [{"field": "status", "message": status}]) from None
    card_type = request.args.get("card_type")
    if card_type:
        try:
            q = q.filter(Card.card_type == CardType(card_type))
        except ValueError:
            raise ValidationFailed("Неизвестный тип карты", [{"field": "card_type", "message": card_type}]) from None
    account_id = request.args.get("bank_account_id", type=int)
    if account_id:
        q = q.filter(Card.bank_account_id == account_id)
    employee_id = request.args.get("employee_id", type=int)
    if employee_id:
        q = q.filter(Card.assigned_employee_id == employee_id)
    rows = q.order_by(Card.id.desc()).all()
    return jsonify({"cards": [_card_out(c, a, b) for c, a, b in rows]})


@bp.get("/cards/<int:card_id>")
@roles_required("cards", "read")
def get_card(ctx, card_id: int):
    return jsonify({"card": lifecycle.get_card(card_id).to_dict()})


@bp.post("/cards")
@roles_required("cards", "write")
def create_card(ctx):
    data = body(CardIn)
    card = lifecycle.create_card(data, ctx.user_id)
    log_ctx(ctx, "card_created", {"card_id": card.id, "card_type": card.card_type.value,
                                  "bank_account_id": card.bank_account_id})
    return jsonify({"success": True, "card": card.to_dict()}), 201


@bp.put("/cards/<int:card_id>")
@roles_required("cards", "write")
def update_card(ctx, card_id: int):
    data = body(CardUpdate)
    card = lifecycle.update_card(lifecycle.get_card(card_id), data)
    log_ctx(ctx, "card_updated", {"card_id": card.id, "fields": sorted(data.model_fields_set)})
    return jsonify({"success": True, "card": card.to_dict()})


@bp.delete("/cards/<int:card_id>")
@roles_required("cards", "delete")
def delete_card(ctx, card_id: int):
    card = lifecycle.get_card(card_id)
    lifecycle.delete_card(card)
    log_ctx(ctx, "card_deleted", {"card_id": card_id})
    return jsonify({"success": True})


@bp.put("/cards/<int:card_id>/status")
@roles_required("cards", "status")
def change_status(ctx, card_id: int):
    data = body(CardStatusIn)
    card = lifecycle.get_card(card_id)
    old = card.status.value
    lifecycle.change_status(card, data.status)
    log_ctx(ctx, "card_status_changed", {"card_id": card.id, "old": old, "new": card.status.value})
    return jsonify({"success": True, "card": card.to_dict()})


@bp.post("/cards/assign")
@roles_required("cards", "assign")
def assign(ctx):
    data = body(AssignIn)
    cards = lifecycle.assign_cards(data.card_ids, data.employee_id, data.casino_id)
    log_ctx(ctx, "cards_assigned", {"card_ids": [c.id for c in cards],
                                    "employee_id": data.employee_id, "casino_id": data.casino_id})
    return jsonify({"success": True, "cards": [c.to_dict() for c in cards]})


@bp.delete("/cards/assign")
@roles_required("cards", "assign")
def unassign(ctx):
    card_id = request.args.get("card_id", type=int)
    if not card_id:
        raise ValidationFailed("Не указан card_id", [{"field": "card_id", "message": "обязательный параметр"}])
    card = lifecycle.unassign_card(lifecycle.get_card(card_id))
    log_ctx(ctx, "card_unassigned", {"card_id": card.id})
    return jsonify({"success": True, "card": card.to_dict()})
