# -*- coding: utf-8 -*-
from __future__ import annotations

import enum


class Role(str, enum.Enum):
    ADMIN = "Admin"
    CFO = "CFO"
    MANAGER = "Manager"
    HR = "HR"
    EMPLOYEE = "Employee"
    TESTER = "Tester"


# роли, для которых существует запись Employee
WORKER_ROLES = frozenset({Role.EMPLOYEE, Role.TESTER})


class CardType(str, enum.Enum):
    PINK = "pink"
    GRAY = "gray"


class CardStatus(str, enum.Enum):
    FREE = "free"
    ASSIGNED = "assigned"
    IN_PROCESS = "in_process"
    COMPLETED = "completed"
    BLOCKED = "blocked"


# free -> assigned -> in_process -> completed; assigned -> free только через снятие;
# blocked достижим из любого состояния и конечен
CARD_TRANSITIONS: dict[CardStatus, frozenset[CardStatus]] = {
    CardStatus.FREE: frozenset({CardStatus.ASSIGNED, CardStatus.BLOCKED}),
    CardStatus.ASSIGNED: frozenset({CardStatus.IN_PROCESS, CardStatus.FREE, CardStatus.BLOCKED}),
    CardStatus.IN_PROCESS: frozenset({CardStatus.COMPLETED, CardStatus.BLOCKED}),
    CardStatus.COMPLETED: frozenset({CardStatus.BLOCKED}),
    CardStatus.BLOCKED: frozenset(),
}


class TransactionType(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TRANSACTION_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset({
        TransactionStatus.COMPLETED, TransactionStatus.FAILED, TransactionStatus.CANCELLED,
    }),
    TransactionStatus.COMPLETED: frozenset({TransactionStatus.CANCELLED}),
    TransactionStatus.FAILED: frozenset(),
    TransactionStatus.CANCELLED: frozenset(),
}


class WithdrawalStatus(str, enum.Enum):
    NEW = "new"
    SENT = "sent"
    RECEIVED = "received"
    PROBLEM = "problem"
    BLOCKED = "blocked"


class TestSiteStatus(str, enum.Enum):
    __test__ = False  # не тест-класс для pytest

    ACTIVE = "active"
    PROCESSING = "processing"
    TESTING = "testing"


class SalaryStatus(str, enum.Enum):
    CALCULATED = "calculated"
    PAID = "paid"


class CalculationBase(str, enum.Enum):
    GROSS = "gross"
    NET = "net"


class UsdtNetwork(str, enum.Enum):
    BEP20 = "BEP20"
    ERC20 = "ERC20"
    TRC20 = "TRC20"


def values(e: type[enum.Enum]) -> tuple[str, ...]:
    return tuple(m.value for m in e)
