import re

from sqlalchemy import func

from app.errors import Conflict, Forbidden, InvalidArgument, NotFound
from app.extensions import db
from app.models import Maid, Rating
from app.models.base import enum_value
from app.models.enums import UserRole, VerificationStatus
from app.services.file_service import FileService
from app.services.ledger_service import LedgerService
from app.services.unit_of_work import atomic

TIME_PATTERN = re.compile(r"([01]\d|2[0-3]):[0-5]\d")
SERVICE_TYPES = {"maid", "babysitter", "caretaker", "cook", "cleaner"}
DOCUMENT_TYPES = {"id_proof", "address_proof", "photo", "certificate"}


class MaidService:
    @staticmethod
    def _profile_for(actor):
        if actor.role != UserRole.MAID.value:
            raise Forbidden("Forbidden.")
        maid = Maid.query.filter_by(user_id=actor.id).first()
        if not maid:
            raise NotFound("Maid profile not found.")
        return maid

    @staticmethod
    def register(actor, bio=None, experience=None, service_types=None):
        """Turn a customer account into a maid account with an empty profile."""
        if actor.role != UserRole.CUSTOMER.value:
            raise Forbidden("Only customer accounts can register as maids.")
        if Maid.query.filter_by(user_id=actor.id).first():
            raise Conflict("Maid profile already exists.")

        try:
            years = int(experience) if experience not in (None, "") else None
        except (TypeError, ValueError) as exc:
            raise InvalidArgument("Experience must be a whole number of years.") from exc
        if years is not None and years < 0:
            raise InvalidArgument("Experience cannot be negative.")
        types = sorted({str(item).strip().lower() for item in (service_types or ["maid"])})
        unknown = set(types) - SERVICE_TYPES
        if unknown:
            raise InvalidArgument(f"Unknown service types: {', '.join(sorted(unknown))}.")

        maid = Maid(
            user_id=actor.id,
            bio=(bio or "").strip() or None,
            experience=years,
            service_types=types,
            documents=[],
        )
        with atomic():
            actor.role = UserRole.MAID
            db.session.add(maid)
            LedgerService.ensure_wallet(actor.id)
        return maid

    @staticmethod
    def get_profile(actor):
        maid = MaidService._profile_for(actor)
        wallet = LedgerService.get_or_create_wallet(actor.id)
        average, count = (
            db.session.query(func.avg(Rating.rating), func.count(Rating.id))
            .filter(Rating.maid_id == maid.id)
            .one()
        )
        return {
            "id": maid.id,
            "user_id": maid.user_id,
            "bio": maid.bio,
            "experience": maid.experience,
            "total_jobs": maid.total_jobs,
            "is_available": maid.is_available,
            "availability_start_time": maid.availability_start_time,
            "availability_end_time": maid.availability_end_time,
            "service_types": maid.service_types or [],
            "verification_status": maid.verification_status,
            "documents": maid.documents or [],
            "wallet": wallet.to_dict(),
            "average_rating": round(float(average or 0), 2),
            "total_ratings": int(count or 0),
        }

    @staticmethod
    def update_availability(actor, is_available, start_time=None, end_time=None):
        maid = MaidService._profile_for(actor)
        for label, value in (("startTime", start_time), ("endTime", end_time)):
            if value is not None and not TIME_PATTERN.fullmatch(str(value)):
                raise InvalidArgument(f"{label} must be in HH:MM format.")
        if start_time and end_time and start_time >= end_time:
            raise InvalidArgument("startTime must be before endTime.")

        with atomic():
            maid.is_available = bool(is_available)
            maid.availability_start_time = start_time
            maid.availability_end_time = end_time
        return maid

    @staticmethod
    def earnings(actor, limit=50, offset=0):
        MaidService._profile_for(actor)
        wallet = LedgerService.get_or_create_wallet(actor.id)
        return wallet, LedgerService.list_transactions(wallet.id, limit=limit, offset=offset)

    @staticmethod
    def add_document(actor, storage, document_type, upload_root):
        maid = MaidService._profile_for(actor)
        document_type = (document_type or "").strip().lower()
        if document_type not in DOCUMENT_TYPES:
            raise InvalidArgument("Unknown document type.")
        url = FileService.save_image(storage, upload_root, folder=f"documents/{maid.id}")
        with atomic():
            # Reassign so the JSON column is flagged dirty.
            maid.documents = list(maid.documents or []) + [{"url": url, "type": document_type}]
        return maid.documents

    @staticmethod
    def set_verification_status(admin, maid_id, status):
        if not admin.is_admin:
            raise Forbidden("Only admins can verify maids.")
        maid = db.session.get(Maid, maid_id)
        if not maid:
            raise NotFound("Maid not found.")
        with atomic():
            maid.verification_status = enum_value(VerificationStatus, status, "verification status")
        return maid
