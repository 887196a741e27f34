from flask import current_app


class SmsService:
    """Out-of-band delivery of one-time passcodes.

    ``console`` writes the code to the application log and is meant for local
    development only. ``null`` accepts and drops the message.
    """

    BACKENDS = {"console", "null"}

    @staticmethod
    def send_otp(phone, code):
        backend = (current_app.config.get("SMS_BACKEND") or "null").lower()
        if backend not in SmsService.BACKENDS:
            current_app.logger.warning("Unknown SMS backend %r; OTP for %s not delivered.", backend, phone)
            return False
        if backend == "console":
            current_app.logger.info("[DEV] OTP for %s: %s", phone, code)
        return True
