from datetime import datetime, timezone

from sqlalchemy import or_

from app.errors import Forbidden, InvalidArgument, NotFound
from app.extensions import db
from app.models import CommissionRule, Service
from app.models.base import utcnow
from app.services.platform_service import PlatformService
from app.services.pricing import HUNDRED, to_decimal
from app.services.unit_of_work import atomic


def parse_datetime(value, label):
    if value is None or isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise InvalidArgument(f"{label} must be an ISO-8601 datetime.") from exc
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    # Stored as UTC; SQLite keeps no offset.
    return parsed.astimezone(timezone.utc)


class CommissionService:
    @staticmethod
    def active_rule_for(service_id, now=None):
        now = now or utcnow()
        return (
            CommissionRule.query.filter(CommissionRule.service_id == service_id)
            .filter(CommissionRule.is_active.is_(True))
            .filter(CommissionRule.effective_from <= now)
            .filter(or_(CommissionRule.effective_to.is_(None), CommissionRule.effective_to >= now))
            .order_by(CommissionRule.effective_from.desc(), CommissionRule.id.desc())
            .first()
        )

    @staticmethod
    def rates_for(service_id, now=None):
        """(commission %, platform fee %, GST %) for a service at ``now``."""
        rule = CommissionService.active_rule_for(service_id, now)
        if not rule:
            return PlatformService.default_rates()
        return (
            rule.commission_percentage,
            rule.platform_fee_percentage if rule.platform_fee_percentage is not None else 0,
            rule.gst_percentage if rule.gst_percentage is not None else 18,
        )

    @staticmethod
    def create_rule(
        actor,
        service_id,
        commission_pct,
        platform_fee_pct=0,
        gst_pct=18,
        effective_from=None,
        effective_to=None,
    ):
        if not actor.is_admin:
            raise Forbidden("Only admins can manage commission rules.")
        if not db.session.get(Service, service_id):
            raise NotFound("Service not found.")

        commission = to_decimal(commission_pct, "Commission percentage")
        if commission > HUNDRED:
            raise InvalidArgument("Commission percentage cannot exceed 100.")
        starts = parse_datetime(effective_from, "effectiveFrom") or utcnow()
        ends = parse_datetime(effective_to, "effectiveTo")
        if ends is not None and ends <= starts:
            raise InvalidArgument("effectiveTo must be after effectiveFrom.")

        rule = CommissionRule(
            service_id=service_id,
            commission_percentage=commission,
            platform_fee_percentage=to_decimal(platform_fee_pct, "Platform fee percentage"),
            gst_percentage=to_decimal(gst_pct, "GST percentage"),
            effective_from=starts,
            effective_to=ends,
            is_active=True,
        )
        with atomic():
            db.session.add(rule)
        return rule
