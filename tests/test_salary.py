"""Monthly payroll: base selection, per-employee pay, role earnings, payment."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from backoffice.extensions import db
from backoffice.models import RoleEarning, SalaryCalculation, SalarySummary
from backoffice.models.enums import CalculationBase, Role, SalaryStatus, TransactionStatus
from backoffice.modules.salaries.engine import employee_pay, month_base

MONTH = "2024-03"
IN_MONTH = date(2024, 3, 10)


class TestMonthBase:
    def test_gross_when_expenses_small(self):
        mb = month_base("450", "40")
        assert mb.calculation_base is CalculationBase.GROSS
        assert mb.base_amount == Decimal("450.00")
        assert mb.expense_percentage == Decimal("8.89")

    def test_exactly_twenty_percent_is_gross(self):
        mb = month_base("1000", "200")
        assert mb.calculation_base is CalculationBase.GROSS
        assert mb.base_amount == Decimal("1000.00")

    def test_net_above_twenty_percent(self):
        mb = month_base("1000", "250")
        assert mb.calculation_base is CalculationBase.NET
        assert mb.base_amount == Decimal("750.00")

    def test_zero_profit(self):
        mb = month_base("0", "100")
        assert mb.expense_percentage == Decimal("0.00")
        assert mb.calculation_base is CalculationBase.GROSS
        assert mb.base_amount == Decimal("0.00")


class TestEmployeePay:
    def test_leader_over_threshold(self):
        pay = employee_pay("300", "300")
        assert pay.base_salary == Decimal("30.00")
        assert pay.performance_bonus == Decimal("200.00")
        assert pay.leader_bonus == Decimal("30.00")
        assert pay.is_leader
        assert pay.total == Decimal("260.00")

    def test_threshold_is_strict(self):
        pay = employee_pay("200", "300")
        assert pay.performance_bonus == Decimal("0.00")
        assert pay.total == Decimal("20.00")

    def test_no_leader_without_profit(self):
        pay = employee_pay("0", "0")
        assert not pay.is_leader
        assert pay.total == Decimal("0.00")

    def test_rounding_half_up(self):
        assert employee_pay("0.05", "1").base_salary == Decimal("0.01")


@pytest.fixture
def march(make, client, users):
    """A: 300, B: 150, расход 40 за март 2024."""
    acc = make.account()
    card = make.card(acc)
    casino = make.casino()
    a, b = make.worker("alice"), make.worker("bob")
    make.transaction(a.employee_id, card, casino, "300.00", on=IN_MONTH)
    make.transaction(b.employee_id, card, casino, "150.00", on=IN_MONTH)
    # другой месяц в расчёт не попадает
    make.transaction(a.employee_id, card, casino, "999.00", on=date(2024, 4, 1))
    resp = client.post("/expenses", headers=users[Role.CFO].headers,
                       json={"description": "Proxies", "amount_usd": "40.00", "expense_date": "2024-03-15"})
    assert resp.status_code == 201
    assert resp.get_json()["expense"]["month"] == MONTH
    return a, b


def _calculate(client, headers, month=MONTH):
    return client.post("/salaries/calculate", json={"month": month}, headers=headers)


def _salary(app, employee_id: int) -> SalaryCalculation:
    with app.app_context():
        row = SalaryCalculation.query.filter_by(employee_id=employee_id, month=MONTH).one()
        db.session.expunge(row)
        return row


class TestCalculate:
    def test_two_workers_with_expense(self, app, client, admin, march):
        a, b = march
        resp = _calculate(client, admin.headers)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["total_employees_profit"] == 450.0
        assert data["total_expenses"] == 40.0
        assert data["calculation_base"] == "gross"
        assert data["base_amount"] == 450.0

        ra, rb = _salary(app, a.employee_id), _salary(app, b.employee_id)
        assert (ra.base_salary, ra.performance_bonus, ra.leader_bonus) == (Decimal("30.00"), Decimal("200.00"), Decimal("30.00"))
        assert ra.total_salary == Decimal("260.00") and ra.is_leader
        assert rb.total_salary == Decimal("15.00") and not rb.is_leader
        assert ra.status is SalaryStatus.CALCULATED

    def test_role_earnings(self, app, client, users, march):
        _calculate(client, users[Role.ADMIN].headers)
        with app.app_context():
            earned = {
                r.role: r.earnings
                for r in RoleEarning.query.filter_by(month=MONTH).all()
            }
        assert earned[Role.MANAGER] == Decimal("45.00")
        assert earned[Role.HR] == Decimal("22.50")
        assert earned[Role.CFO] == Decimal("22.50")
        assert earned[Role.ADMIN] == Decimal("45.00")
        assert Role.EMPLOYEE not in earned

    def test_every_active_employee_gets_a_row(self, app, client, admin, make, march):
        fired = make.worker("gone", active=False)
        data = _calculate(client, admin.headers).get_json()
        # alice, bob и два сотрудника из фикстуры (Employee, Tester) с нулевой прибылью
        assert data["employees_calculated"] == 4
        with app.app_context():
            assert SalaryCalculation.query.filter_by(employee_id=fired.employee_id).count() == 0

    def test_profit_counted_regardless_of_status(self, app, client, admin, make):
        w = make.worker("carl")
        acc = make.account()
        make.transaction(w.employee_id, make.card(acc), make.casino(), "50.00", on=IN_MONTH,
                         status=TransactionStatus.PENDING)
        _calculate(client, admin.headers)
        assert _salary(app, w.employee_id).employee_profit == Decimal("50.00")

    def test_recalculation_is_idempotent(self, app, client, admin, march):
        a, _ = march
        _calculate(client, admin.headers)
        first = _salary(app, a.employee_id)
        _calculate(client, admin.headers)
        second = _salary(app, a.employee_id)
        assert first.id == second.id
        assert first.total_salary == second.total_salary
        with app.app_context():
            assert SalaryCalculation.query.filter_by(month=MONTH).count() == 4
            assert SalarySummary.query.filter_by(month=MONTH).count() == 1

    def test_fired_leader_dropped_on_recalculation(self, app, client, admin, march):
        a, b = march
        _calculate(client, admin.headers)
        fired = client.post(f"/employees/{a.employee_id}/fire", json={"reason": "Уход"}, headers=admin.headers)
        assert fired.status_code == 200

        data = _calculate(client, admin.headers).get_json()
        assert data["removed_stale"] >= 1
        with app.app_context():
            rows = SalaryCalculation.query.filter_by(month=MONTH).all()
            assert a.employee_id not in {r.employee_id for r in rows}
            assert [r.employee_id for r in rows if r.is_leader] == [b.employee_id]
        # новый лидер: 15 + 15
        assert _salary(app, b.employee_id).total_salary == Decimal("30.00")

        paid = client.post("/salaries/pay", json={"month": MONTH}, headers=admin.headers).get_json()
        assert paid["employees_paid"] == 3

    def test_deactivated_manager_loses_unpaid_role_row(self, app, client, admin, users, march):
        _calculate(client, admin.headers)
        manager = users[Role.MANAGER]
        client.put(f"/users/{manager.id}", json={"is_active": False}, headers=admin.headers)
        _calculate(client, admin.headers)
        with app.app_context():
            assert RoleEarning.query.filter_by(user_id=manager.id, month=MONTH).count() == 0

    def test_exchange_rate_applied(self, app, client, admin, march):
        a, _ = march
        client.post("/salaries/calculate", json={"month": MONTH, "exchange_rate": "0.5"}, headers=admin.headers)
        assert _salary(app, a.employee_id).total_usd == Decimal("130.00")

    def test_bad_month(self, client, admin):
        assert _calculate(client, admin.headers, month="2024-13").status_code == 400

    def test_hr_can_calculate(self, client, users, march):
        assert _calculate(client, users[Role.HR].headers).status_code == 200

    def test_manager_cannot_calculate(self, client, users):
        assert _calculate(client, users[Role.MANAGER].headers).status_code == 403


class TestPay:
    def test_pay_then_nothing_left(self, app, client, users, march):
        a, _ = march
        _calculate(client, users[Role.ADMIN].headers)
        resp = client.post("/salaries/pay", json={"month": MONTH}, headers=users[Role.CFO].headers)
        assert resp.status_code == 200
        assert resp.get_json()["employees_paid"] == 4
        row = _salary(app, a.employee_id)
        assert row.status is SalaryStatus.PAID and row.paid_at is not None

        again = client.post("/salaries/pay", json={"month": MONTH}, headers=users[Role.CFO].headers)
        assert again.status_code == 400
        assert again.get_json()["error"] == "Нет рассчитанных зарплат за этот месяц"

    def test_recalculation_leaves_paid_rows(self, app, client, admin, make, march):
        a, _ = march
        _calculate(client, admin.headers)
        client.post("/salaries/pay", json={"month": MONTH}, headers=admin.headers)
        paid = _salary(app, a.employee_id)

        # новая прибыль после выплаты
        acc = make.account(bank_name="Later")
        make.transaction(a.employee_id, make.card(acc, number="4222222222222222"), make.casino("Late"),
                         "1000.00", on=IN_MONTH)
        data = _calculate(client, admin.headers).get_json()
        assert data["employees_calculated"] == 0
        assert data["skipped_paid"] > 0
        after = _salary(app, a.employee_id)
        assert after.total_salary == paid.total_salary
        assert after.status is SalaryStatus.PAID

    def test_hr_cannot_pay(self, client, users, march):
        _calculate(client, users[Role.HR].headers)
        resp = client.post("/salaries/pay", json={"month": MONTH}, headers=users[Role.HR].headers)
        assert resp.status_code == 403

    def test_pay_without_calculation(self, client, admin):
        resp = client.post("/salaries/pay", json={"month": "2020-01"}, headers=admin.headers)
        assert resp.status_code == 400


class TestOverview:
    def test_overview_and_stats(self, client, admin, march):
        _calculate(client, admin.headers)
        data = client.get(f"/salaries?month={MONTH}", headers=admin.headers).get_json()
        assert data["summary"]["base_amount"] == 450.0
        assert data["salaries"][0]["username"] == "alice"
        assert {r["role"] for r in data["role_earnings"]} == {"Admin", "CFO", "Manager", "HR", "Tester"}

        stats = client.get(f"/salaries/stats?month={MONTH}", headers=admin.headers).get_json()["stats"]
        assert stats["pending_salaries"] == 4
        assert stats["pending_amount"] == 275.0
