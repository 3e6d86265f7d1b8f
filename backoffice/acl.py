# -*- coding: utf-8 -*-
"""
Матрица доступа (ресурс, операция) -> роли и старшинство ролей для увольнений.
"""
from __future__ import annotations

import logging

from .models.enums import Role

logger = logging.getLogger(__name__)

A, CFO, M, HR, E, T = Role.ADMIN, Role.CFO, Role.MANAGER, Role.HR, Role.EMPLOYEE, Role.TESTER

FINANCE = frozenset({A, CFO})
OPERATIONS = frozenset({A, CFO, M})
PEOPLE = frozenset({A, HR})
EVERYONE = frozenset(Role)

POLICY: dict[tuple[str, str], frozenset[Role]] = {
    # банки и счета
    ("banks", "read"): FINANCE,
    ("banks", "write"): FINANCE,
    ("bank_accounts", "read"): FINANCE,
    ("bank_accounts", "write"): FINANCE,
    ("bank_accounts", "pink_cards"): FINANCE,
    # карты
    ("cards", "read"): OPERATIONS,
    ("cards", "write"): FINANCE,
    ("cards", "status"): OPERATIONS,
    ("cards", "assign"): OPERATIONS,
    ("cards", "delete"): frozenset({A}),
    # казино и тест-сайты
    ("casinos", "read"): OPERATIONS,
    ("casinos", "write"): FINANCE,
    ("test_sites", "read"): frozenset({A, M, T}),
    ("test_sites", "write"): frozenset({A, M, T}),
    ("test_sites", "status"): frozenset({A, M, T}),
    # сотрудники
    ("employees", "read"): frozenset({A, CFO, M, HR}),
    ("employees", "create"): PEOPLE,
    ("employees", "update"): PEOPLE,
    ("employees", "delete"): frozenset({A}),
    ("employees", "fire"): frozenset({A, HR, M}),
    ("users", "read"): PEOPLE,
    ("users", "write"): PEOPLE,
    ("users", "password"): frozenset({A}),
    # операции
    ("transactions", "read"): OPERATIONS,
    ("transactions", "write"): OPERATIONS,
    ("transactions", "status"): OPERATIONS,
    ("work_files", "own"): EVERYONE,
    ("work_files", "read_all"): frozenset({A, M, HR}),
    ("work_files", "edit"): frozenset({A, M, HR}),
    # зарплаты и расходы
    ("salaries", "read"): frozenset({A, CFO, HR}),
    ("salaries", "calculate"): frozenset({A, CFO, HR}),
    ("salaries", "pay"): FINANCE,
    ("expenses", "read"): FINANCE,
    ("expenses", "write"): FINANCE,
    # отчёты и журнал
    ("dashboard", "read"): OPERATIONS,
    ("reports", "read"): OPERATIONS,
    ("employee_dashboard", "read"): OPERATIONS,
    ("logs", "read"): frozenset({A}),
}

# старшинство: кто кого может увольнять
RANK: dict[Role, int] = {
    Role.ADMIN: 100,
    Role.CFO: 80,
    Role.MANAGER: 60,
    Role.HR: 40,
    Role.TESTER: 10,
    Role.EMPLOYEE: 10,
}
assert set(RANK) == set(Role), "RANK должен покрывать все роли"


def allowed(role: Role, resource: str, operation: str) -> bool:
    roles = POLICY.get((resource, operation))
    if roles is None:
        # неизвестная пара: запрет и предупреждение в лог
        logger.warning("acl: no policy for %s.%s", resource, operation)
        return False
    return role in roles


def outranks(actor: Role, target: Role) -> bool:
    if actor is Role.ADMIN:
        return True
    if target is Role.ADMIN:
        return False
    return RANK[actor] > RANK[target]


def can_fire(actor: Role, target: Role, actor_user_id: int | None = None,
             target_user_id: int | None = None) -> bool:
    if actor_user_id is not None and actor_user_id == target_user_id:
        return False
    return outranks(actor, target)
