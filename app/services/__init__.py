from app.services.auth_service import AuthService
from app.services.booking_service import BookingService
from app.services.catalog_service import CatalogService
from app.services.commission_service import CommissionService
from app.services.file_service import FileService
from app.services.ledger_service import LedgerService
from app.services.maid_service import MaidService
from app.services.notification_service import NotificationService
from app.services.otp_service import OtpService
from app.services.payment_service import PaymentService
from app.services.platform_service import PlatformService
from app.services.rating_service import RatingService
from app.services.sms_service import SmsService
from app.services.withdrawal_service import WithdrawalService

__all__ = [
    "AuthService",
    "BookingService",
    "CatalogService",
    "CommissionService",
    "FileService",
    "LedgerService",
    "MaidService",
    "NotificationService",
    "OtpService",
    "PaymentService",
    "PlatformService",
    "RatingService",
    "SmsService",
    "WithdrawalService",
]
