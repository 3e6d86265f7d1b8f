from datetime import datetime
from ..extensions import db
from .base import SerializerMixin

class Employee(db.Model, SerializerMixin):
    """Расширение User для ролей Employee/Tester."""
    __tablename__ = "employees"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False)
    commission_rate = db.Column(db.Numeric(5, 4), default=0.10)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    fired_at = db.Column(db.DateTime, nullable=True)
    fired_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    fire_reason = db.Column(db.String(255), nullable=True)
    last_working_day = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("User", foreign_keys=[user_id], lazy="joined", backref=db.backref("employee", uselist=False))

    def to_dict(self, exclude=()):
        d = super().to_dict(exclude)
        if self.user is not None:
            d["username"] = self.user.username
            d["full_name"] = self.user.full_name
            d["role"] = self.user.role.value
        return d


class FiredEmployeeArchive(db.Model, SerializerMixin):
    __tablename__ = "fired_employees_archive"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    username = db.Column(db.String(64), nullable=False)
    full_name = db.Column(db.String(128), default="")
    role = db.Column(db.String(16), nullable=False)
    hire_date = db.Column(db.DateTime, nullable=True)
    fire_date = db.Column(db.DateTime, default=datetime.utcnow)
    fire_reason = db.Column(db.String(255), default="")
    fired_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    total_earned = db.Column(db.Numeric(12, 2), default=0)
    last_salary = db.Column(db.Numeric(12, 2), default=0)


class BlockedIP(db.Model, SerializerMixin):
    __tablename__ = "blocked_ips"

    id = db.Column(db.Integer, primary_key=True)
    ip_address = db.Column(db.String(64), nullable=False, index=True)
    blocked_reason = db.Column(db.String(255), default="")
    related_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    blocked_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    blocked_at = db.Column(db.DateTime, default=datetime.utcnow)
