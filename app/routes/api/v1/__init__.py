from flask import Blueprint

from app.routes.api.v1.admin import api_admin_bp
from app.routes.api.v1.auth import api_auth_bp
from app.routes.api.v1.bookings import api_booking_bp
from app.routes.api.v1.maids import api_maid_bp
from app.routes.api.v1.notifications import api_notification_bp
from app.routes.api.v1.payments import api_payment_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_auth_bp, url_prefix="/auth")
api_v1_bp.register_blueprint(api_booking_bp, url_prefix="/bookings")
api_v1_bp.register_blueprint(api_maid_bp, url_prefix="/maids")
api_v1_bp.register_blueprint(api_payment_bp, url_prefix="/payments")
api_v1_bp.register_blueprint(api_notification_bp, url_prefix="/notifications")
api_v1_bp.register_blueprint(api_admin_bp, url_prefix="/admin")
