# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from datetime import date

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func

from ...activity import log_ctx
from ...errors import NotFound, ValidationFailed
from ...extensions import db
from ...models import Bank, BankAccount, Card
from ...schemas import BankAccountIn, BankIn, BulkImportIn, PinkCardsIn, body
from ...security import roles_required
from .importer import parse_upload, rows_to_payload

logger = logging.getLogger(__name__)

bp = Blueprint("banks", __name__)


def _new_account(bank_id: int, daily_limit: int | None, **fields) -> BankAccount:
    limit = daily_limit if daily_limit is not None else current_app.config["PINK_CARDS_DAILY_LIMIT"]
    return BankAccount(
        bank_id=bank_id,
        pink_cards_daily_limit=limit,
        pink_cards_remaining=limit,
        last_reset_date=date.today(),
        **fields,
    )


# ---------- банки ----------
@bp.get("/banks")
@roles_required("banks", "read")
def list_banks(ctx):
    counts = dict(
        db.session.query(BankAccount.bank_id, func.count(BankAccount.id))
        .group_by(BankAccount.bank_id).all()
    )
    banks = Bank.query.order_by(Bank.name).all()
    out = []
    for b in banks:
        d = b.to_dict()
        d["accounts_count"] = counts.get(b.id, 0)
        out.append(d)
    return jsonify({"banks": out})


@bp.post("/banks")
@roles_required("banks", "write")
def create_bank(ctx):
    data = body(BankIn)
    bank = Bank(name=data.name, country=data.country, currency=data.currency)
    db.session.add(bank)
    db.session.commit()
    log_ctx(ctx, "bank_created", {"bank_id": bank.id, "name": bank.name})
    return jsonify({"success": True, "bank": bank.to_dict()}), 201


@bp.post("/banks/bulk-import")
@roles_required("banks", "write")
def bulk_import(ctx):
    upload = request.files.get("file")
    if upload is not None:
        rows = parse_upload(upload.filename or "", upload.read())
        payload = rows_to_payload(
            rows,
            bank_name=(request.form.get("bank_name") or "").strip(),
            bank_country=(request.form.get("bank_country") or "").strip(),
        )
        data = BulkImportIn.model_validate(payload)
    else:
        data = body(BulkImportIn)

    # всё или ничего: одна транзакция на банк, счета и карты
    bank = Bank(name=data.bank_name, country=data.bank_country, currency=data.currency)
    db.session.add(bank)
    db.session.flush()
    accounts = cards = 0
    for acc_in in data.accounts:
        fields = acc_in.model_dump(exclude={"cards", "pink_cards_daily_limit"})
        acc = _new_account(bank.id, acc_in.pink_cards_daily_limit, **fields)
        db.session.add(acc)
        db.session.flush()
        accounts += 1
        for c in acc_in.cards:
            # загрузка остатков, а не выпуск: лимит розовых карт не расходуется
            db.session.add(Card(
                bank_account_id=acc.id, card_number=c.card_number, expiry_date=c.expiry_date,
                cvv=c.cvv, card_type=c.card_type, created_by=ctx.user_id,
            ))
            cards += 1
    db.session.commit()
    logger.info("bulk import: bank %s, %d accounts, %d cards", bank.id, accounts, cards)
    log_ctx(ctx, "bank_bulk_import", {"bank_id": bank.id, "accounts": accounts, "cards": cards})
    return jsonify({"success": True, "bank": bank.to_dict(), "accounts_created": accounts, "cards_created": cards}), 201


# ---------- счета ----------
@bp.get("/bank-accounts")
@roles_required("bank_accounts", "read")
def list_accounts(ctx):
    q = BankAccount.query
    bank_id = request.args.get("bank_id", type=int)
    if bank_id:
        q = q.filter(BankAccount.bank_id == bank_id)
    out = []
    for a in q.order_by(BankAccount.id).all():
        d = a.to_dict()
        d["bank_name"] = a.bank.name if a.bank else None
        out.append(d)
    return jsonify({"accounts": out})


@bp.post("/bank-accounts")
@roles_required("bank_accounts", "write")
def create_account(ctx):
    data = body(BankAccountIn)
    if db.session.get(Bank, data.bank_id) is None:
        raise NotFound("Банк не найден")
    fields = data.model_dump(exclude={"bank_id", "pink_cards_daily_limit"})
    acc = _new_account(data.bank_id, data.pink_cards_daily_limit, **fields)
    db.session.add(acc)
    db.session.commit()
    log_ctx(ctx, "bank_account_created", {"account_id": acc.id, "bank_id": acc.bank_id})
    return jsonify({"success": True, "account": acc.to_dict()}), 201


@bp.put("/bank-accounts/<int:account_id>/pink-cards")
@roles_required("bank_accounts", "pink_cards")
def set_pink_cards(ctx, account_id: int):
    data = body(PinkCardsIn)
    acc = db.session.get(BankAccount, account_id)
    if acc is None:
        raise NotFound("Банковский счёт не найден")
    if data.pink_cards_remaining > acc.pink_cards_daily_limit:
        raise ValidationFailed(
            "Остаток не может превышать дневной лимит",
            [{"field": "pink_cards_remaining", "message": f"максимум {acc.pink_cards_daily_limit}"}],
        )
    old = acc.pink_cards_remaining
    acc.pink_cards_remaining = data.pink_cards_remaining
    db.session.commit()
    log_ctx(ctx, "pink_cards_updated", {"account_id": acc.id, "old": old, "new": acc.pink_cards_remaining})
    return jsonify({"success": True, "account": acc.to_dict()})
