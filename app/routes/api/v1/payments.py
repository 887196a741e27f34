from flask import Blueprint, jsonify, request
from flask_login import current_user

from app.decorators import role_required
from app.services import PaymentService

api_payment_bp = Blueprint("api_payment", __name__)


@api_payment_bp.post("")
@role_required("customer")
def initiate_payment():
    payload = request.get_json(silent=True) or {}
    payment = PaymentService.initiate_payment(current_user, payload.get("bookingCode"), payload.get("paymentMethod"))
    return jsonify(PaymentService.to_dict(payment)), 201


@api_payment_bp.post("/<int:payment_id>/confirm")
@role_required("customer")
def confirm_payment(payment_id):
    payload = request.get_json(silent=True) or {}
    payment = PaymentService.confirm_payment(current_user, payment_id, payload.get("gatewayTransactionId"))
    return jsonify(PaymentService.to_dict(payment))


@api_payment_bp.post("/<int:payment_id>/fail")
@role_required("customer")
def fail_payment(payment_id):
    payload = request.get_json(silent=True) or {}
    payment = PaymentService.fail_payment(current_user, payment_id, payload.get("reason"))
    return jsonify(PaymentService.to_dict(payment))
