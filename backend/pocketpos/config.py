# backend/pocketpos/config.py
from __future__ import annotations
import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Hosted relational backend (SQLite locally)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///pocketpos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" uses the tables above, "json" keeps one JSON blob per collection in DATA_DIR
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "sql")
    DATA_DIR = os.environ.get("DATA_DIR", "pos_data")

    # Product image uploads, served under /uploads/
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join("public", "uploads"))
    MAX_CONTENT_LENGTH = _env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024)

    # Calendar days for the dashboard are computed in shop-local time
    POS_TIMEZONE = os.environ.get("POS_TIMEZONE", "Asia/Manila")
    LOW_STOCK_THRESHOLD = _env_int("LOW_STOCK_THRESHOLD", 10)

    # Simulated card-terminal pairing
    TERMINAL_LINK_SUCCESS_RATE = _env_float("TERMINAL_LINK_SUCCESS_RATE", 0.7)
    TERMINAL_LINK_LATENCY_SECONDS = _env_float("TERMINAL_LINK_LATENCY_SECONDS", 1.5)

    # Checkout sessions untouched this long are dropped; 0 keeps them until deleted
    CHECKOUT_SESSION_IDLE_SECONDS = _env_int("CHECKOUT_SESSION_IDLE_SECONDS", 8 * 60 * 60)
