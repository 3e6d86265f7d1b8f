from datetime import datetime
from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash
from ..extensions import db
from .base import SerializerMixin, enum_column
from .enums import Role, UsdtNetwork

class User(db.Model, UserMixin, SerializerMixin):
    __tablename__ = "users"
    __hidden__ = ("password_hash",)

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(128), default="")
    password_hash = db.Column(db.String(256), nullable=False)
    full_name = db.Column(db.String(128), default="")
    role = enum_column(Role, nullable=False, default=Role.EMPLOYEE)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    usdt_address = db.Column(db.String(64), nullable=True)
    usdt_network = enum_column(UsdtNetwork, nullable=True)
    hr_notes = db.Column(db.Text, nullable=True)
    hired_date = db.Column(db.Date, nullable=True)
    fired_date = db.Column(db.Date, nullable=True)
    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def display_name(self) -> str:
        name = (self.full_name or "").strip()
        return f"{name} ({self.username})" if name else self.username


class UserSession(db.Model, SerializerMixin):
    __tablename__ = "user_sessions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    token_id = db.Column(db.String(64), unique=True, nullable=False)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(256), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
