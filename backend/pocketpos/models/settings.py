from __future__ import annotations

from ..extensions import db


class AppSettingsRecord(db.Model):
    """
    Singleton shop profile row (id is always 1).

    Categories live in their own table; see CategoryRecord.
    """
    __tablename__ = "app_settings"

    SINGLETON_ID = 1

    id = db.Column(db.Integer, primary_key=True)
    shop_name = db.Column(db.String(255), nullable=False)
    shop_address = db.Column(db.String(255), nullable=False, default="")
    tin = db.Column(db.String(64), nullable=False, default="")

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
