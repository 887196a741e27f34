from sqlalchemy.orm import validates

from app.extensions import db
from app.models.base import PKType, TimestampMixin, enum_value
from app.models.enums import BookingStatus, CancelledBy, PaymentStatus

BOOKING_CODE_PATTERN = r"^BK-\d{8}-[A-Z0-9]{5}$"


class Booking(TimestampMixin, db.Model):
    __tablename__ = "bookings"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    booking_code = db.Column(db.String(20), nullable=False, unique=True, index=True)
    customer_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    maid_id = db.Column(PKType, db.ForeignKey("maids.id", ondelete="SET NULL"), nullable=True, index=True)
    service_id = db.Column(PKType, db.ForeignKey("services.id"), nullable=False, index=True)

    scheduled_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    scheduled_end_date = db.Column(db.DateTime(timezone=True), nullable=True)
    duration = db.Column(db.Integer, nullable=False)
    location = db.Column(db.Text, nullable=False)
    latitude = db.Column(db.Numeric(10, 8), nullable=True)
    longitude = db.Column(db.Numeric(11, 8), nullable=True)
    special_requests = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(24), nullable=False, default=BookingStatus.PENDING.value, index=True)
    payment_status = db.Column(db.String(24), nullable=False, default=PaymentStatus.PENDING.value, index=True)

    base_price = db.Column(db.Numeric(10, 2), nullable=False)
    commission_pct = db.Column(db.Numeric(5, 2), nullable=False)
    platform_fee_pct = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    gst_pct = db.Column(db.Numeric(5, 2), nullable=False)
    commission_amount = db.Column(db.Numeric(10, 2), nullable=False)
    platform_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    gst_amount = db.Column(db.Numeric(10, 2), nullable=False)
    quoted_price = db.Column(db.Numeric(10, 2), nullable=False)
    maid_amount = db.Column(db.Numeric(10, 2), nullable=False)
    final_price = db.Column(db.Numeric(10, 2), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    cancelled_by = db.Column(db.String(24), nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)

    accepted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    customer = db.relationship("User", back_populates="bookings")
    maid = db.relationship("Maid", back_populates="bookings")
    service = db.relationship("Service")
    payments = db.relationship("Payment", back_populates="booking", lazy="dynamic")
    rating = db.relationship("Rating", back_populates="booking", uselist=False)

    __table_args__ = (
        db.Index("ix_bookings_customer_status", "customer_id", "status"),
        db.Index("ix_bookings_maid_status", "maid_id", "status"),
        db.CheckConstraint("duration >= 30 AND duration <= 480", name="ck_booking_duration_range"),
        db.CheckConstraint("quoted_price >= 0", name="ck_booking_quoted_price_non_negative"),
        db.CheckConstraint("status <> 'pending' OR maid_id IS NULL", name="ck_booking_pending_unassigned"),
        db.CheckConstraint(
            "status IN ('pending', 'cancelled', 'no_show') OR maid_id IS NOT NULL",
            name="ck_booking_maid_assigned",
        ),
    )

    @validates("status")
    def _validate_status(self, _key, value):
        return enum_value(BookingStatus, value, "booking status")

    @validates("payment_status")
    def _validate_payment_status(self, _key, value):
        return enum_value(PaymentStatus, value, "payment status")

    @validates("cancelled_by")
    def _validate_cancelled_by(self, _key, value):
        return enum_value(CancelledBy, value, "cancelling actor", nullable=True)

    @property
    def is_assigned(self):
        return self.maid_id is not None

    def price_breakdown(self):
        return {
            "basePrice": str(self.base_price),
            "commission": str(self.commission_amount),
            "platformFee": str(self.platform_fee),
            "gst": str(self.gst_amount),
            "totalAmount": str(self.quoted_price),
            "maidAmount": str(self.maid_amount),
        }

    def to_dict(self):
        return {
            "id": self.id,
            "booking_code": self.booking_code,
            "customer_id": self.customer_id,
            "maid_id": self.maid_id,
            "service_id": self.service_id,
            "scheduled_date": self.scheduled_date.isoformat(),
            "scheduled_end_date": self.scheduled_end_date.isoformat() if self.scheduled_end_date else None,
            "duration": self.duration,
            "location": self.location,
            "special_requests": self.special_requests,
            "status": self.status,
            "payment_status": self.payment_status,
            "quoted_price": str(self.quoted_price),
            "final_price": str(self.final_price) if self.final_price is not None else None,
            "price_breakdown": self.price_breakdown(),
            "cancelled_by": self.cancelled_by,
            "cancellation_reason": self.cancellation_reason,
        }
