from app.extensions import db
from app.models.base import PKType, TimestampMixin


class Service(TimestampMixin, db.Model):
    __tablename__ = "services"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    base_price = db.Column(db.Numeric(10, 2), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    commission_rules = db.relationship("CommissionRule", back_populates="service", lazy="dynamic")

    __table_args__ = (db.CheckConstraint("base_price > 0", name="ck_service_base_price_positive"),)
