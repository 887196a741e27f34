from sqlalchemy.orm import validates

from app.extensions import db
from app.models.base import PKType, TimestampMixin, enum_value
from app.models.enums import VerificationStatus


class Maid(TimestampMixin, db.Model):
    __tablename__ = "maids"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    bio = db.Column(db.Text, nullable=True)
    experience = db.Column(db.Integer, nullable=True)
    rating = db.Column(db.Numeric(3, 2), nullable=False, default=0)
    total_jobs = db.Column(db.Integer, nullable=False, default=0)
    is_available = db.Column(db.Boolean, nullable=False, default=True, index=True)
    availability_start_time = db.Column(db.String(5), nullable=True)
    availability_end_time = db.Column(db.String(5), nullable=True)
    service_types = db.Column(db.JSON, nullable=True)
    verification_status = db.Column(db.String(24), nullable=False, default=VerificationStatus.PENDING.value)
    documents = db.Column(db.JSON, nullable=True)

    user = db.relationship("User", back_populates="maid_profile")
    bookings = db.relationship("Booking", back_populates="maid", lazy="dynamic")
    ratings = db.relationship("Rating", back_populates="maid", lazy="dynamic")

    @validates("verification_status")
    def _validate_verification_status(self, _key, value):
        return enum_value(VerificationStatus, value, "verification status")
