from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from app.errors import InvalidArgument

HUNDRED = Decimal("100")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class PriceBreakdown:
    base_price: Decimal
    commission: Decimal
    platform_fee: Decimal
    gst: Decimal
    total_amount: Decimal
    maid_amount: Decimal

    def quantized(self):
        """Currency-rounded copy, for persistence."""
        return PriceBreakdown(*(value.quantize(CENT) for value in self._values()))

    def as_dict(self):
        return {
            "basePrice": str(self.base_price),
            "commission": str(self.commission),
            "platformFee": str(self.platform_fee),
            "gst": str(self.gst),
            "totalAmount": str(self.total_amount),
            "maidAmount": str(self.maid_amount),
        }

    def _values(self):
        return (
            self.base_price,
            self.commission,
            self.platform_fee,
            self.gst,
            self.total_amount,
            self.maid_amount,
        )


def to_decimal(value, label):
    if isinstance(value, bool):
        raise InvalidArgument(f"{label} must be a number.")
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidArgument(f"{label} must be a number.") from exc
    if not number.is_finite():
        raise InvalidArgument(f"{label} must be finite.")
    if number < 0:
        raise InvalidArgument(f"{label} cannot be negative.")
    return number


def calculate_price(base_price, commission_pct, platform_fee_pct=0, gst_pct=18):
    base = to_decimal(base_price, "Base price")
    if base == 0:
        raise InvalidArgument("Base price must be positive.")
    commission_rate = to_decimal(commission_pct, "Commission percentage")
    fee_rate = to_decimal(platform_fee_pct, "Platform fee percentage")
    gst_rate = to_decimal(gst_pct, "GST percentage")
    if commission_rate > HUNDRED:
        raise InvalidArgument("Commission percentage cannot exceed 100.")

    commission = base * commission_rate / HUNDRED
    platform_fee = base * fee_rate / HUNDRED
    subtotal = base + commission + platform_fee
    gst = subtotal * gst_rate / HUNDRED
    total_amount = subtotal + gst
    maid_amount = base - commission

    return PriceBreakdown(
        base_price=base,
        commission=commission,
        platform_fee=platform_fee,
        gst=gst,
        total_amount=total_amount,
        maid_amount=maid_amount,
    )
