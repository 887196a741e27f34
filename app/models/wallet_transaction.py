from sqlalchemy.orm import validates

from app.extensions import db
from app.models.base import PKType, enum_value, utcnow
from app.models.enums import TransactionType


class WalletTransaction(db.Model):
    """Append-only ledger row. Never updated once written."""

    __tablename__ = "wallet_transactions"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    wallet_id = db.Column(PKType, db.ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_type = db.Column("type", db.String(32), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    booking_id = db.Column(PKType, db.ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True, index=True)
    payment_id = db.Column(PKType, db.ForeignKey("payments.id", ondelete="SET NULL"), nullable=True)
    balance_before = db.Column(db.Numeric(12, 2), nullable=False)
    balance_after = db.Column(db.Numeric(12, 2), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    wallet = db.relationship("Wallet", back_populates="transactions")

    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_wallet_transaction_amount_positive"),
        db.CheckConstraint("balance_after >= 0", name="ck_wallet_transaction_balance_non_negative"),
    )

    @validates("transaction_type")
    def _validate_type(self, _key, value):
        return enum_value(TransactionType, value, "transaction type")

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.transaction_type,
            "amount": str(self.amount),
            "description": self.description,
            "booking_id": self.booking_id,
            "payment_id": self.payment_id,
            "balance_before": str(self.balance_before),
            "balance_after": str(self.balance_after),
            "created_at": self.created_at.isoformat(),
        }
