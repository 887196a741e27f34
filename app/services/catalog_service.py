from app.errors import Forbidden, InvalidArgument
from app.extensions import db
from app.models import Service
from app.services.pricing import to_decimal
from app.services.unit_of_work import atomic


class CatalogService:
    @staticmethod
    def list_services():
        return Service.query.filter_by(is_active=True).order_by(Service.name.asc()).all()

    @staticmethod
    def create_service(actor, name, base_price, description=None):
        if not actor.is_admin:
            raise Forbidden("Only admins can manage services.")
        name = (name or "").strip().lower()
        if not name:
            raise InvalidArgument("Service name is required.")
        price = to_decimal(base_price, "Base price")
        if price <= 0:
            raise InvalidArgument("Base price must be positive.")

        service = Service(
            name=name,
            description=(description or "").strip() or None,
            base_price=price,
            is_active=True,
        )
        with atomic():
            db.session.add(service)
        return service

    @staticmethod
    def to_dict(service):
        return {
            "id": service.id,
            "name": service.name,
            "description": service.description,
            "base_price": str(service.base_price),
            "is_active": service.is_active,
        }
