from app.models.booking import Booking
from app.models.commission_rule import CommissionRule
from app.models.maid import Maid
from app.models.notification import Notification
from app.models.otp_session import OtpSession
from app.models.payment import Payment
from app.models.platform_setting import PlatformSetting
from app.models.rating import Rating
from app.models.service import Service
from app.models.user import User
from app.models.wallet import Wallet
from app.models.wallet_transaction import WalletTransaction
from app.models.withdrawal_request import WithdrawalRequest

__all__ = [
    "User",
    "Maid",
    "Service",
    "CommissionRule",
    "Booking",
    "Payment",
    "Wallet",
    "WalletTransaction",
    "OtpSession",
    "Notification",
    "Rating",
    "WithdrawalRequest",
    "PlatformSetting",
]
