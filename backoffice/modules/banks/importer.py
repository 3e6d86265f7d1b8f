# -*- coding: utf-8 -*-
"""
Разбор файла массового импорта (.xlsx / .csv): одна строка = одна карта.
Колонки: bank_name, bank_country, account_name, account_number, sort_code,
card_number, expiry_date, cvv, card_type.
"""
from __future__ import annotations

import csv
import io
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from ...errors import ValidationFailed

ACCOUNT_FIELDS = ("account_name", "account_number", "sort_code", "login_url", "login_password", "bank_address")
CARD_FIELDS = ("card_number", "expiry_date", "cvv", "card_type")


def _cell(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    return str(v).strip()


def _xlsx_rows(content: bytes) -> list[dict[str, str]]:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, KeyError, OSError) as e:
        raise ValidationFailed(f"Не удалось прочитать XLSX: {e}") from e
    try:
        it = wb.active.iter_rows(values_only=True)
        headers = [_cell(h).lower() for h in (next(it, None) or [])]
        rows = []
        for r in it:
            if not r or not any(c is not None for c in r):
                continue
            rows.append({headers[i]: _cell(r[i]) for i in range(min(len(headers), len(r))) if headers[i]})
    finally:
        wb.close()
    return rows


def _csv_rows(content: bytes) -> list[dict[str, str]]:
    try:
        text_data = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationFailed("CSV должен быть в UTF-8") from e
    first = text_data.splitlines()[0] if text_data else ""
    delimiter = ";" if first.count(";") > first.count(",") else ","
    reader = csv.DictReader(io.StringIO(text_data), delimiter=delimiter)
    return [
        {(k or "").strip().lower(): (v or "").strip() for k, v in row.items()}
        for row in reader
    ]


def rows_to_payload(rows: list[dict[str, str]], bank_name: str = "", bank_country: str = "") -> dict[str, Any]:
    """Группирует строки по номеру счёта в структуру BulkImportIn."""
    accounts: dict[str, dict[str, Any]] = {}
    for row in rows:
        bank_name = bank_name or row.get("bank_name", "")
        bank_country = bank_country or row.get("bank_country", "")
        number = row.get("account_number", "")
        acc = accounts.get(number)
        if acc is None:
            acc = {f: row.get(f, "") for f in ACCOUNT_FIELDS}
            acc["cards"] = []
            accounts[number] = acc
        if row.get("card_number"):
            card = {f: row.get(f, "") for f in CARD_FIELDS}
            card["card_type"] = (card["card_type"] or "gray").lower()
            acc["cards"].append(card)
    return {"bank_name": bank_name, "bank_country": bank_country, "accounts": list(accounts.values())}


def parse_upload(filename: str, content: bytes) -> list[dict[str, str]]:
    name = (filename or "").lower()
    if name.endswith(".xlsx"):
        rows = _xlsx_rows(content)
    elif name.endswith(".csv"):
        rows = _csv_rows(content)
    else:
        raise ValidationFailed("Поддерживаются только .xlsx и .csv")
    if not rows:
        raise ValidationFailed("Пустой файл импорта")
    return rows
