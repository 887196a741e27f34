from flask_login import UserMixin
from sqlalchemy.orm import validates

from app.extensions import db
from app.models.base import PKType, TimestampMixin, enum_value, utcnow
from app.models.enums import UserRole


class User(UserMixin, TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    open_id = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(120), nullable=True)
    email = db.Column(db.String(320), nullable=True, unique=True, index=True)
    phone = db.Column(db.String(20), nullable=True, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(24), nullable=False, default=UserRole.CUSTOMER.value, index=True)
    login_method = db.Column(db.String(64), nullable=True)
    profile_image_url = db.Column(db.String(500), nullable=True)
    is_active_user = db.Column(db.Boolean, nullable=False, default=True)
    last_signed_in = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    maid_profile = db.relationship("Maid", back_populates="user", uselist=False)
    wallet = db.relationship("Wallet", back_populates="user", uselist=False)
    bookings = db.relationship("Booking", back_populates="customer", lazy="dynamic")
    notifications = db.relationship("Notification", back_populates="user", lazy="dynamic")

    @validates("role")
    def _validate_role(self, _key, value):
        return enum_value(UserRole, value, "role")

    @property
    def is_admin(self):
        return self.role in {UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "login_method": self.login_method,
            "profile_image_url": self.profile_image_url,
            "last_signed_in": self.last_signed_in.isoformat() if self.last_signed_in else None,
        }
