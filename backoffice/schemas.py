# -*- coding: utf-8 -*-
"""
Схемы входных данных (pydantic). Ошибка валидации -> 400 со списком полей.
"""
from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from typing import Any, Literal, Optional

from flask import request
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import ValidationFailed
from .models.enums import (
    WORKER_ROLES, CardStatus, CardType, Role, TestSiteStatus, TransactionStatus,
    TransactionType, UsdtNetwork, WithdrawalStatus,
)

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
EXPIRY_PATTERN = r"^(0[1-9]|1[0-2])/\d{2}$"

EVM_ADDRESS = re.compile(r"^0x[a-fA-F0-9]{40}$")
TRON_ADDRESS = re.compile(r"^T[1-9A-HJ-NP-Za-km-z]{33}$")


def body(model: type[BaseModel]):
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationFailed("Ожидается JSON-тело запроса")
    return model.model_validate(data)


class _In(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


# ---------- auth / profile ----------
class LoginIn(_In):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)


class ChangePasswordIn(_In):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class PasswordIn(_In):
    password: str = Field(min_length=6)


class UsdtIn(_In):
    usdt_address: str = Field(min_length=1)
    usdt_network: UsdtNetwork

    @model_validator(mode="after")
    def _address_matches_network(self):
        pattern = TRON_ADDRESS if self.usdt_network is UsdtNetwork.TRC20 else EVM_ADDRESS
        if not pattern.match(self.usdt_address):
            raise ValueError(f"Адрес не соответствует сети {self.usdt_network.value}")
        return self


# ---------- банки ----------
class BankIn(_In):
    name: str = Field(min_length=1, max_length=128)
    country: str = ""
    currency: str = Field("USD", max_length=8)


class BankAccountIn(_In):
    bank_id: int
    account_name: str = Field(min_length=1, max_length=128)
    account_number: str = Field(min_length=1, max_length=64)
    sort_code: str = ""
    login_url: str = ""
    login_password: str = ""
    bank_address: str = ""
    pink_cards_daily_limit: Optional[int] = Field(None, ge=0)


class PinkCardsIn(_In):
    pink_cards_remaining: int = Field(ge=0)


class CardIn(_In):
    bank_account_id: int
    card_number: str = Field(pattern=r"^\d{12,19}$")
    expiry_date: str = Field(pattern=EXPIRY_PATTERN)
    cvv: str = Field(pattern=r"^\d{3,4}$")
    card_type: CardType
    notes: Optional[str] = None


class CardUpdate(_In):
    card_number: Optional[str] = Field(None, pattern=r"^\d{12,19}$")
    expiry_date: Optional[str] = Field(None, pattern=EXPIRY_PATTERN)
    cvv: Optional[str] = Field(None, pattern=r"^\d{3,4}$")
    notes: Optional[str] = None


class CardStatusIn(_In):
    status: CardStatus


class AssignIn(_In):
    card_ids: list[int] = Field(default_factory=list)
    card_id: Optional[int] = None
    employee_id: int
    casino_id: int

    @model_validator(mode="after")
    def _collect_ids(self):
        ids = list(self.card_ids)
        if self.card_id is not None:
            ids.append(self.card_id)
        # порядок сохраняем, дубликаты убираем
        self.card_ids = list(dict.fromkeys(ids))
        if not self.card_ids:
            raise ValueError("Нужно выбрать хотя бы одну карту")
        return self


class BulkCardIn(_In):
    card_number: str = Field(pattern=r"^\d{12,19}$")
    expiry_date: str = Field(pattern=EXPIRY_PATTERN)
    cvv: str = Field(pattern=r"^\d{3,4}$")
    card_type: CardType = CardType.GRAY


class BulkAccountIn(_In):
    account_name: str = Field(min_length=1)
    account_number: str = Field(min_length=1)
    sort_code: str = ""
    login_url: str = ""
    login_password: str = ""
    bank_address: str = ""
    pink_cards_daily_limit: Optional[int] = Field(None, ge=0)
    cards: list[BulkCardIn] = Field(default_factory=list)


class BulkImportIn(_In):
    bank_name: str = Field(min_length=1)
    bank_country: str = ""
    currency: str = "USD"
    accounts: list[BulkAccountIn] = Field(min_length=1)


# ---------- казино ----------
class CasinoIn(_In):
    name: str = Field(min_length=1, max_length=128)
    url: str = ""
    currency: str = "USD"


class TestSiteIn(_In):
    casino_id: Optional[int] = None
    casino_name: str = Field(min_length=1)
    promo_link: str = ""
    card_bins: list[str] = Field(default_factory=list)
    currency: str = "USD"
    withdrawal_time: Optional[int] = Field(None, ge=0)
    withdrawal_time_unit: Literal["minutes", "hours"] = "hours"
    manual: str = ""
    status: TestSiteStatus = TestSiteStatus.TESTING

    @field_validator("card_bins")
    @classmethod
    def _bins(cls, v: list[str]) -> list[str]:
        for b in v:
            if not re.fullmatch(r"\d{6}", b):
                raise ValueError("BIN: ровно 6 цифр")
        return v


class TestSiteStatusIn(_In):
    status: TestSiteStatus


# ---------- сотрудники / пользователи ----------
class EmployeeIn(_In):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6)
    full_name: str = ""
    email: str = ""
    role: Role = Role.EMPLOYEE
    commission_rate: Decimal = Field(Decimal("0.10"), ge=0, le=1)
    hired_date: Optional[date] = None

    @field_validator("role")
    @classmethod
    def _worker_role(cls, v: Role) -> Role:
        if v not in WORKER_ROLES:
            raise ValueError("Сотрудник может иметь роль Employee или Tester")
        return v


class EmployeeUpdate(_In):
    full_name: Optional[str] = None
    email: Optional[str] = None
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    hr_notes: Optional[str] = None


class FireIn(_In):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", populate_by_name=True)

    reason: str = Field(min_length=1, max_length=255)
    last_working_day: Optional[date] = Field(None, alias="lastWorkingDay")
    block_ips: bool = Field(True, alias="blockIPs")
    revoke_cards: bool = Field(True, alias="revokeCards")
    archive_data: bool = Field(True, alias="archiveData")


class UserUpdate(_In):
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    hr_notes: Optional[str] = None


# ---------- транзакции и рабочие записи ----------
class TransactionIn(_In):
    employee_id: int
    card_id: int
    casino_id: int
    transaction_type: TransactionType
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    profit: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    transaction_date: Optional[date] = None
    notes: Optional[str] = None


class TransactionStatusIn(_In):
    status: TransactionStatus


class WorkEntryIn(_In):
    month: Optional[str] = Field(None, pattern=MONTH_PATTERN)
    casino_name: str = Field(min_length=1)
    deposit_amount: Decimal = Field(Decimal("0"), ge=0)
    withdrawal_amount: Decimal = Field(Decimal("0"), ge=0)
    card_number: str = ""
    card_expiry: str = ""
    card_cvv: str = ""
    card_type: str = ""
    bank_name: str = ""
    account_username: str = ""
    account_password: str = ""
    withdrawal_status: WithdrawalStatus = WithdrawalStatus.NEW
    withdrawal_question: Optional[str] = None
    is_draft: bool = False


class WorkStatusIn(_In):
    withdrawal_status: WithdrawalStatus
    withdrawal_question: Optional[str] = None


# ---------- зарплаты и расходы ----------
class CalculateIn(_In):
    month: str = Field(pattern=MONTH_PATTERN)
    exchange_rate: Optional[Decimal] = Field(None, gt=0)


class PayIn(_In):
    month: str = Field(pattern=MONTH_PATTERN)


class ExpenseIn(_In):
    description: str = Field(min_length=1, max_length=255)
    category: str = "other"
    amount_usd: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    expense_date: date


# ---------- журнал ----------
class LogIn(_In):
    action: str = Field(min_length=1, max_length=56)
    details: dict[str, Any] = Field(default_factory=dict)


class UserIn(_In):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6)
    full_name: str = ""
    email: str = ""
    role: Role
    commission_rate: Decimal = Field(Decimal("0.10"), ge=0, le=1)
    hr_notes: Optional[str] = None
