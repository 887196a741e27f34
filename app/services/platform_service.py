from decimal import Decimal, InvalidOperation

from flask import current_app

from app.extensions import db
from app.models import PlatformSetting
from app.services.unit_of_work import atomic


class PlatformService:
    @staticmethod
    def get_setting(key, default=None):
        setting = db.session.get(PlatformSetting, key)
        if not setting:
            return default
        return setting.value

    @staticmethod
    def get_decimal(key, default):
        raw = PlatformService.get_setting(key, str(default))
        try:
            return Decimal(str(raw))
        except InvalidOperation:
            current_app.logger.warning("Platform setting %s=%r is not numeric; using %s.", key, raw, default)
            return Decimal(str(default))

    @staticmethod
    def set_setting(key, value):
        with atomic():
            setting = db.session.get(PlatformSetting, key)
            if setting:
                setting.value = str(value)
            else:
                setting = PlatformSetting(key=key, value=str(value))
                db.session.add(setting)
        return setting

    @staticmethod
    def default_rates():
        """Commission, platform fee and GST percentages used when a service has no active rule."""
        config = current_app.config
        return (
            PlatformService.get_decimal("default_commission_pct", config.get("DEFAULT_COMMISSION_PCT", "20")),
            PlatformService.get_decimal("default_platform_fee_pct", config.get("DEFAULT_PLATFORM_FEE_PCT", "0")),
            PlatformService.get_decimal("default_gst_pct", config.get("DEFAULT_GST_PCT", "18")),
        )
