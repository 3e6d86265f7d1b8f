from datetime import datetime
from ..extensions import db
from .base import SerializerMixin, enum_column
from .enums import TestSiteStatus


class Casino(db.Model, SerializerMixin):
    __tablename__ = "casinos"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), unique=True, nullable=False)
    url = db.Column(db.String(255), default="")
    currency = db.Column(db.String(8), default="USD")
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class TestSite(db.Model, SerializerMixin):
    """Проверка казино тестером перед запуском в работу."""
    __test__ = False
    __tablename__ = "test_sites"

    id = db.Column(db.Integer, primary_key=True)
    casino_id = db.Column(db.Integer, db.ForeignKey("casinos.id"), nullable=True, index=True)
    casino_name = db.Column(db.String(128), nullable=False)
    promo_link = db.Column(db.String(255), default="")
    card_bins = db.Column(db.JSON, default=list)  # первые 6 цифр карт, которые прошли
    currency = db.Column(db.String(8), default="USD")
    withdrawal_time = db.Column(db.Integer, nullable=True)
    withdrawal_time_unit = db.Column(db.String(8), default="hours")  # minutes|hours
    manual = db.Column(db.Text, default="")
    status = enum_column(TestSiteStatus, nullable=False, default=TestSiteStatus.TESTING)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
