# Overview: Flask extension instances for database and migrations, plus the per-app POS context accessor.

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()

POS_EXTENSION_KEY = "pocketpos"


def current_pos():
    """Return the PosContext bound to the active Flask app."""
    return current_app.extensions[POS_EXTENSION_KEY]
