# Overview: Shop profile settings (singleton), created with defaults on first read.

from __future__ import annotations

import logging

from ..domain import AppSettings
from ..repositories import Storage
from ..validation import SETTINGS_POLICY, validate_payload

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, storage: Storage):
        self.storage = storage

    def get_settings(self) -> AppSettings:
        settings = self.storage.settings.get()
        if settings is None:
            settings = AppSettings()
            self.storage.settings.put(settings)
            logger.info("Created default shop settings")
        settings.categories = self.storage.categories.list_all()
        return settings

    def update_settings(self, payload: dict) -> AppSettings:
        """Partial update of shop_name / shop_address / tin."""
        patch = validate_payload(payload=payload, policy=SETTINGS_POLICY, partial=True)
        settings = self.get_settings()
        for key, value in patch.items():
            setattr(settings, key, value)
        self.storage.settings.put(settings)
        return settings
