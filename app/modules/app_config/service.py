"""
AppConfigService - the process-wide switches clients need to know about.
"""

import time

from app.core.config import config

MONETIZATION_ON = "on"
MONETIZATION_OFF = "off"

# Milliseconds since the epoch; clients use it to notice a server restart
SERVER_STARTED_AT = int(time.time() * 1000)


class AppConfigService:

    @staticmethod
    def monetization_status() -> str:
        return MONETIZATION_ON if config.monetization.strip().lower() == MONETIZATION_ON else MONETIZATION_OFF

    @staticmethod
    def is_monetization_enabled() -> bool:
        return AppConfigService.monetization_status() == MONETIZATION_ON

    @staticmethod
    def monetization_summary() -> dict:
        status = AppConfigService.monetization_status()
        enabled = status == MONETIZATION_ON
        return {
            "monetization": status,
            "creditSystemEnabled": enabled,
            "freeAccess": not enabled,
            "message": (
                "Monetization enabled - Credit system active"
                if enabled
                else "Monetization disabled - Free access mode"
            ),
            "serverTimestamp": SERVER_STARTED_AT,
        }
