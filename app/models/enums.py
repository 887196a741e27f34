import enum


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    MAID = "maid"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class CancelledBy(str, enum.Enum):
    CUSTOMER = "customer"
    MAID = "maid"
    ADMIN = "admin"


class TransactionType(str, enum.Enum):
    CREDIT = "credit"
    DEBIT = "debit"
    REFUND = "refund"
    WITHDRAWAL = "withdrawal"
    COMMISSION_DEDUCTION = "commission_deduction"


class PaymentMethod(str, enum.Enum):
    RAZORPAY = "razorpay"
    STRIPE = "stripe"
    WALLET = "wallet"


class VerificationStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class WithdrawalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"


class NotificationType(str, enum.Enum):
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    JOB_ALERT = "job_alert"
    JOB_ACCEPTED = "job_accepted"
    JOB_COMPLETED = "job_completed"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"
    RATING_RECEIVED = "rating_received"
    SYSTEM_ALERT = "system_alert"
    ADMIN_NOTIFICATION = "admin_notification"
