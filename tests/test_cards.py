"""Card lifecycle: issuance quota, assignment, status transitions."""

from __future__ import annotations

import io
from datetime import date, timedelta

import openpyxl
import pytest

from backoffice.extensions import db
from backoffice.models import Bank, BankAccount, Card
from backoffice.models.enums import CARD_TRANSITIONS, CardStatus, CardType, Role
from backoffice.modules.banks import importer
from backoffice.modules.banks.importer import parse_upload
from backoffice.modules.cards.daily_reset import reset_pink_limits


def _card_body(account_id: int, card_type: str = "pink", number: str = "4000123412341234") -> dict:
    return {
        "bank_account_id": account_id,
        "card_number": number,
        "expiry_date": "08/27",
        "cvv": "321",
        "card_type": card_type,
    }


def _remaining(app, account_id: int) -> int:
    with app.app_context():
        return db.session.get(BankAccount, account_id).pink_cards_remaining


class TestPinkQuota:
    def test_pink_card_consumes_quota(self, app, client, admin, make):
        acc = make.account(limit=5)
        resp = client.post("/cards", json=_card_body(acc), headers=admin.headers)
        assert resp.status_code == 201
        assert resp.get_json()["card"]["status"] == "free"
        assert _remaining(app, acc) == 4

    def test_gray_card_does_not_consume_quota(self, app, client, admin, make):
        acc = make.account(limit=5)
        resp = client.post("/cards", json=_card_body(acc, "gray"), headers=admin.headers)
        assert resp.status_code == 201
        assert _remaining(app, acc) == 5

    def test_exhausted_quota_rejects_and_creates_nothing(self, app, client, admin, make):
        """remaining == 0 -> LimitExceeded, no card row."""
        acc = make.account(limit=5, remaining=0)
        resp = client.post("/cards", json=_card_body(acc), headers=admin.headers)
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Дневной лимит розовых карт исчерпан"}
        with app.app_context():
            assert Card.query.count() == 0
        assert _remaining(app, acc) == 0

    def test_quota_never_goes_negative(self, app, client, admin, make):
        acc = make.account(limit=2)
        codes = [
            client.post("/cards", json=_card_body(acc, number=f"40001234123412{i:02d}"), headers=admin.headers).status_code
            for i in range(4)
        ]
        assert codes == [201, 201, 400, 400]
        assert _remaining(app, acc) == 0
        with app.app_context():
            assert Card.query.filter_by(card_type=CardType.PINK).count() == 2

    def test_unknown_account(self, client, admin):
        resp = client.post("/cards", json=_card_body(999), headers=admin.headers)
        assert resp.status_code == 404

    def test_set_remaining_within_limit(self, app, client, users, make):
        acc = make.account(limit=5, remaining=1)
        cfo = users[Role.CFO]
        resp = client.put(f"/bank-accounts/{acc}/pink-cards", json={"pink_cards_remaining": 5}, headers=cfo.headers)
        assert resp.status_code == 200
        assert _remaining(app, acc) == 5

    @pytest.mark.parametrize("value", [6, -1])
    def test_set_remaining_out_of_bounds(self, app, client, admin, make, value):
        acc = make.account(limit=5, remaining=3)
        resp = client.put(f"/bank-accounts/{acc}/pink-cards", json={"pink_cards_remaining": value}, headers=admin.headers)
        assert resp.status_code == 400
        assert _remaining(app, acc) == 3

    def test_daily_reset_restores_stale_accounts(self, app, make):
        stale = make.account(limit=5, remaining=0)
        fresh = make.account(limit=5, remaining=1, bank_name="Fresh")
        with app.app_context():
            db.session.get(BankAccount, stale).last_reset_date = date.today() - timedelta(days=1)
            db.session.commit()
            assert reset_pink_limits() == 1
        assert _remaining(app, stale) == 5
        assert _remaining(app, fresh) == 1


class TestRoundTrip:
    def test_post_then_get(self, client, admin, make):
        """All submitted fields come back unchanged, plus id/status/timestamps."""
        acc = make.account()
        sent = _card_body(acc, "gray")
        created = client.post("/cards", json=sent, headers=admin.headers).get_json()["card"]
        got = client.get(f"/cards/{created['id']}", headers=admin.headers).get_json()["card"]
        for key, value in sent.items():
            assert got[key] == value
        assert got["status"] == "free"
        assert got["created_at"]

    def test_manager_reads_cards(self, client, users, make):
        acc = make.account()
        make.card(acc)
        resp = client.get("/cards", headers=users[Role.MANAGER].headers)
        assert resp.status_code == 200
        assert len(resp.get_json()["cards"]) == 1
        assert resp.get_json()["cards"][0]["bank_name"] == "Test Bank"


class TestAssignment:
    def test_assign_sets_labels_and_counter(self, app, client, users, make):
        acc = make.account()
        c1, c2 = make.card(acc), make.card(acc, number="4111111111111112")
        casino = make.casino("Vegas")
        w = make.worker("ivan")
        resp = client.post("/cards/assign", headers=users[Role.MANAGER].headers,
                           json={"card_ids": [c1, c2], "employee_id": w.employee_id, "casino_id": casino})
        assert resp.status_code == 200
        with app.app_context():
            for cid in (c1, c2):
                card = db.session.get(Card, cid)
                assert card.assigned_to == "Ivan (ivan)"
                assert card.assigned_site == "Vegas"
                assert card.times_assigned == 1
                # статус назначение не меняет
                assert card.status is CardStatus.FREE

    def test_assign_unknown_employee(self, client, admin, make):
        acc = make.account()
        resp = client.post("/cards/assign", headers=admin.headers,
                           json={"card_id": make.card(acc), "employee_id": 999, "casino_id": make.casino()})
        assert resp.status_code == 404

    def test_assign_unknown_casino(self, client, admin, make):
        acc = make.account()
        w = make.worker("petr")
        resp = client.post("/cards/assign", headers=admin.headers,
                           json={"card_id": make.card(acc), "employee_id": w.employee_id, "casino_id": 999})
        assert resp.status_code == 404

    def test_assign_requires_cards(self, client, admin, make):
        w = make.worker("olga")
        resp = client.post("/cards/assign", headers=admin.headers,
                           json={"card_ids": [], "employee_id": w.employee_id, "casino_id": make.casino()})
        assert resp.status_code == 400

    def test_unassign_assigned_card(self, app, client, admin, make):
        acc = make.account()
        cid = make.card(acc, status=CardStatus.ASSIGNED)
        resp = client.delete(f"/cards/assign?card_id={cid}", headers=admin.headers)
        assert resp.status_code == 200
        with app.app_context():
            card = db.session.get(Card, cid)
            assert card.status is CardStatus.FREE
            assert card.assigned_to is None and card.assigned_site is None

    @pytest.mark.parametrize("status", [CardStatus.FREE, CardStatus.IN_PROCESS, CardStatus.COMPLETED, CardStatus.BLOCKED])
    def test_unassign_requires_assigned_status(self, app, client, admin, make, status):
        acc = make.account()
        cid = make.card(acc, status=status)
        resp = client.delete(f"/cards/assign?card_id={cid}", headers=admin.headers)
        assert resp.status_code == 400
        with app.app_context():
            assert db.session.get(Card, cid).status is status


class TestStatusTransitions:
    def test_blocked_is_terminal(self):
        assert CARD_TRANSITIONS[CardStatus.BLOCKED] == frozenset()

    def test_every_state_can_be_blocked(self):
        for state, targets in CARD_TRANSITIONS.items():
            if state is not CardStatus.BLOCKED:
                assert CardStatus.BLOCKED in targets

    def test_happy_path(self, client, users, make):
        cid = make.card(make.account())
        headers = users[Role.MANAGER].headers
        for status in ("assigned", "in_process", "completed"):
            resp = client.put(f"/cards/{cid}/status", json={"status": status}, headers=headers)
            assert resp.status_code == 200, resp.get_json()
            assert resp.get_json()["card"]["status"] == status

    @pytest.mark.parametrize("start,target", [
        (CardStatus.FREE, "completed"),
        (CardStatus.FREE, "in_process"),
        (CardStatus.COMPLETED, "free"),
        (CardStatus.IN_PROCESS, "assigned"),
        (CardStatus.BLOCKED, "free"),
    ])
    def test_illegal_jumps(self, client, admin, make, start, target):
        cid = make.card(make.account(), status=start)
        resp = client.put(f"/cards/{cid}/status", json={"status": target}, headers=admin.headers)
        assert resp.status_code == 400

    def test_unknown_status_value(self, client, admin, make):
        cid = make.card(make.account())
        resp = client.put(f"/cards/{cid}/status", json={"status": "lost"}, headers=admin.headers)
        assert resp.status_code == 400
        assert resp.get_json()["details"][0]["field"] == "status"


class TestDelete:
    def test_admin_deletes_free_card(self, app, client, admin, make):
        cid = make.card(make.account())
        assert client.delete(f"/cards/{cid}", headers=admin.headers).status_code == 200
        with app.app_context():
            assert db.session.get(Card, cid) is None

    def test_cannot_delete_card_in_use(self, client, admin, make):
        cid = make.card(make.account(), status=CardStatus.IN_PROCESS)
        assert client.delete(f"/cards/{cid}", headers=admin.headers).status_code == 400

    def test_cfo_cannot_delete(self, client, users, make):
        cid = make.card(make.account())
        assert client.delete(f"/cards/{cid}", headers=users[Role.CFO].headers).status_code == 403


class TestBulkImport:
    def test_json_import_creates_everything(self, app, client, users):
        payload = {
            "bank_name": "Monzo",
            "bank_country": "GB",
            "accounts": [
                {"account_name": "Main", "account_number": "111", "pink_cards_daily_limit": 3,
                 "cards": [
                     {"card_number": "5100000000000001", "expiry_date": "01/28", "cvv": "111", "card_type": "pink"},
                     {"card_number": "5100000000000002", "expiry_date": "02/28", "cvv": "222"},
                 ]},
                {"account_name": "Spare", "account_number": "222"},
            ],
        }
        resp = client.post("/banks/bulk-import", json=payload, headers=users[Role.CFO].headers)
        assert resp.status_code == 201
        data = resp.get_json()
        assert (data["accounts_created"], data["cards_created"]) == (2, 2)
        with app.app_context():
            main = BankAccount.query.filter_by(account_number="111").one()
            # импорт остатков лимит не расходует
            assert main.pink_cards_remaining == 3
            assert Card.query.filter_by(bank_account_id=main.id).count() == 2

    def test_invalid_card_rolls_back_whole_import(self, app, client, admin):
        payload = {
            "bank_name": "Broken",
            "accounts": [{"account_name": "A", "account_number": "1",
                          "cards": [{"card_number": "12", "expiry_date": "13/28", "cvv": "1"}]}],
        }
        resp = client.post("/banks/bulk-import", json=payload, headers=admin.headers)
        assert resp.status_code == 400
        with app.app_context():
            assert Bank.query.count() == 0

    def test_csv_upload_groups_rows_by_account(self, app, client, admin):
        content = (
            "account_name;account_number;card_number;expiry_date;cvv;card_type\n"
            "Main;111;5100000000000001;01/28;111;pink\n"
            "Main;111;5100000000000002;02/28;222;\n"
            "Other;222;5100000000000003;03/28;333;gray\n"
        ).encode("utf-8")
        resp = client.post(
            "/banks/bulk-import",
            data={"file": (io.BytesIO(content), "cards.csv"), "bank_name": "Revolut"},
            content_type="multipart/form-data",
            headers=admin.headers,
        )
        assert resp.status_code == 201, resp.get_json()
        assert resp.get_json()["accounts_created"] == 2
        with app.app_context():
            assert Bank.query.filter_by(name="Revolut").count() == 1
            assert Card.query.filter_by(card_type=CardType.GRAY).count() == 2

    def test_unsupported_file_type(self, client, admin):
        resp = client.post(
            "/banks/bulk-import",
            data={"file": (io.BytesIO(b"x"), "cards.txt"), "bank_name": "X"},
            content_type="multipart/form-data",
            headers=admin.headers,
        )
        assert resp.status_code == 400


class TestXlsxParsing:
    def test_xlsx_rows(self):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["Account_Number", "Card_Number", "Expiry_Date", "CVV"])
        ws.append([111, 5100000000000001, "01/28", 123])
        ws.append([None, None, None, None])
        buf = io.BytesIO()
        wb.save(buf)
        rows = parse_upload("cards.xlsx", buf.getvalue())
        assert rows == [{"account_number": "111", "card_number": "5100000000000001",
                         "expiry_date": "01/28", "cvv": "123"}]

    def test_workbook_closed_when_reading_fails(self, monkeypatch):
        closed = []

        class _Sheet:
            def iter_rows(self, values_only=True):
                raise ValueError("broken sheet")

        class _Book:
            active = _Sheet()

            def close(self):
                closed.append(True)

        monkeypatch.setattr(importer.openpyxl, "load_workbook", lambda *a, **kw: _Book())
        with pytest.raises(ValueError):
            parse_upload("cards.xlsx", b"PK")
        assert closed == [True]
