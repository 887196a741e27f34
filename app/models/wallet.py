from app.extensions import db
from app.models.base import PKType, TimestampMixin


class Wallet(TimestampMixin, db.Model):
    __tablename__ = "wallets"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_earnings = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_withdrawn = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_refunded = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    user = db.relationship("User", back_populates="wallet")
    transactions = db.relationship("WalletTransaction", back_populates="wallet", lazy="dynamic")

    __table_args__ = (db.CheckConstraint("balance >= 0", name="ck_wallet_balance_non_negative"),)

    def to_dict(self):
        return {
            "id": self.id,
            "balance": str(self.balance),
            "total_earnings": str(self.total_earnings),
            "total_withdrawn": str(self.total_withdrawn),
            "total_refunded": str(self.total_refunded),
        }
