from sqlalchemy.orm import validates

from app.extensions import db
from app.models.base import PKType, TimestampMixin, enum_value
from app.models.enums import WithdrawalStatus


class WithdrawalRequest(TimestampMixin, db.Model):
    __tablename__ = "withdrawal_requests"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    maid_id = db.Column(PKType, db.ForeignKey("maids.id", ondelete="CASCADE"), nullable=False, index=True)
    wallet_id = db.Column(PKType, db.ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    bank_account_number = db.Column(db.String(20), nullable=True)
    bank_ifsc = db.Column(db.String(11), nullable=True)
    bank_name = db.Column(db.String(100), nullable=True)
    status = db.Column(db.String(24), nullable=False, default=WithdrawalStatus.PENDING.value, index=True)
    approved_by = db.Column(PKType, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    maid = db.relationship("Maid")
    wallet = db.relationship("Wallet")

    __table_args__ = (db.CheckConstraint("amount > 0", name="ck_withdrawal_amount_positive"),)

    @validates("status")
    def _validate_status(self, _key, value):
        return enum_value(WithdrawalStatus, value, "withdrawal status")

    def to_dict(self):
        return {
            "id": self.id,
            "maid_id": self.maid_id,
            "amount": str(self.amount),
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "created_at": self.created_at.isoformat(),
        }
