from app.extensions import db
from app.models.base import PKType, TimestampMixin


class CommissionRule(TimestampMixin, db.Model):
    __tablename__ = "commission_rules"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    service_id = db.Column(PKType, db.ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    commission_percentage = db.Column(db.Numeric(5, 2), nullable=False)
    platform_fee_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    gst_percentage = db.Column(db.Numeric(5, 2), nullable=False, default=18)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    effective_from = db.Column(db.DateTime(timezone=True), nullable=False)
    effective_to = db.Column(db.DateTime(timezone=True), nullable=True)

    service = db.relationship("Service", back_populates="commission_rules")

    __table_args__ = (
        db.Index("ix_commission_rules_service_effective", "service_id", "effective_from"),
        db.CheckConstraint("commission_percentage >= 0", name="ck_commission_rule_commission_non_negative"),
        db.CheckConstraint("platform_fee_percentage >= 0", name="ck_commission_rule_fee_non_negative"),
        db.CheckConstraint("gst_percentage >= 0", name="ck_commission_rule_gst_non_negative"),
    )
