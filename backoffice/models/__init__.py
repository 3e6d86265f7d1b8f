from .user import User, UserSession
from .employee import Employee, FiredEmployeeArchive, BlockedIP
from .casino import Casino, TestSite
from .bank import Bank, BankAccount, Card
from .transaction import Transaction, WorkEntry
from .payroll import Expense, SalarySummary, SalaryCalculation, RoleEarning
from .activity import ActivityLog

__all__ = [
    "User", "UserSession",
    "Employee", "FiredEmployeeArchive", "BlockedIP",
    "Casino", "TestSite",
    "Bank", "BankAccount", "Card",
    "Transaction", "WorkEntry",
    "Expense", "SalarySummary", "SalaryCalculation", "RoleEarning",
    "ActivityLog",
]
