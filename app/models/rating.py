from app.extensions import db
from app.models.base import PKType, TimestampMixin


class Rating(TimestampMixin, db.Model):
    __tablename__ = "ratings"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    booking_id = db.Column(PKType, db.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, unique=True)
    maid_id = db.Column(PKType, db.ForeignKey("maids.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = db.Column(db.SmallInteger, nullable=False)
    review = db.Column(db.Text, nullable=True)
    is_anonymous = db.Column(db.Boolean, nullable=False, default=False)

    booking = db.relationship("Booking", back_populates="rating")
    maid = db.relationship("Maid", back_populates="ratings")

    __table_args__ = (db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_rating_range"),)

    def to_dict(self):
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "maid_id": self.maid_id,
            "customer_id": None if self.is_anonymous else self.customer_id,
            "rating": self.rating,
            "review": self.review,
            "created_at": self.created_at.isoformat(),
        }
