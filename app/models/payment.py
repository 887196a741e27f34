from sqlalchemy.orm import validates

from app.extensions import db
from app.models.base import PKType, TimestampMixin, enum_value
from app.models.enums import PaymentMethod, PaymentStatus


class Payment(TimestampMixin, db.Model):
    __tablename__ = "payments"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    booking_id = db.Column(PKType, db.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    maid_id = db.Column(PKType, db.ForeignKey("maids.id", ondelete="SET NULL"), nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="INR")
    payment_method = db.Column(db.String(24), nullable=False)
    payment_gateway_id = db.Column(db.String(100), nullable=True)
    status = db.Column(db.String(24), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    transaction_id = db.Column(db.String(100), nullable=True, unique=True)
    refund_amount = db.Column(db.Numeric(10, 2), nullable=True)
    refund_reason = db.Column(db.Text, nullable=True)

    booking = db.relationship("Booking", back_populates="payments")

    __table_args__ = (db.CheckConstraint("amount >= 0", name="ck_payment_amount_non_negative"),)

    @validates("status")
    def _validate_status(self, _key, value):
        return enum_value(PaymentStatus, value, "payment status")

    @validates("payment_method")
    def _validate_payment_method(self, _key, value):
        return enum_value(PaymentMethod, value, "payment method")
