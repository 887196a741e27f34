from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from app.decorators import role_required
from app.services import MaidService, WithdrawalService

api_maid_bp = Blueprint("api_maid", __name__)


@api_maid_bp.post("/register")
@role_required("customer")
def register_maid():
    payload = request.get_json(silent=True) or {}
    MaidService.register(
        current_user,
        bio=payload.get("bio"),
        experience=payload.get("experience"),
        service_types=payload.get("serviceTypes"),
    )
    return jsonify(MaidService.get_profile(current_user)), 201


@api_maid_bp.get("/me")
@role_required("maid")
def my_profile():
    return jsonify(MaidService.get_profile(current_user))


@api_maid_bp.patch("/me/availability")
@role_required("maid")
def update_availability():
    payload = request.get_json(silent=True) or {}
    MaidService.update_availability(
        current_user,
        payload.get("isAvailable", True),
        start_time=payload.get("startTime"),
        end_time=payload.get("endTime"),
    )
    return jsonify(MaidService.get_profile(current_user))


@api_maid_bp.get("/me/earnings")
@role_required("maid")
def my_earnings():
    limit = min(max(request.args.get("limit", default=50, type=int), 1), 200)
    offset = max(request.args.get("offset", default=0, type=int), 0)
    wallet, entries = MaidService.earnings(current_user, limit=limit, offset=offset)
    return jsonify({"wallet": wallet.to_dict(), "transactions": [entry.to_dict() for entry in entries]})


@api_maid_bp.post("/me/documents")
@role_required("maid")
def upload_document():
    documents = MaidService.add_document(
        current_user,
        request.files.get("file"),
        request.form.get("type"),
        current_app.config["UPLOAD_DIR"],
    )
    return jsonify({"documents": documents}), 201


@api_maid_bp.get("/me/withdrawals")
@role_required("maid")
def my_withdrawals():
    return jsonify([item.to_dict() for item in WithdrawalService.list_for_maid(current_user)])


@api_maid_bp.post("/me/withdrawals")
@role_required("maid")
def request_withdrawal():
    payload = request.get_json(silent=True) or {}
    item = WithdrawalService.request_withdrawal(
        current_user,
        payload.get("amount"),
        bank_account_number=payload.get("bankAccountNumber"),
        bank_ifsc=payload.get("bankIfsc"),
        bank_name=payload.get("bankName"),
    )
    return jsonify(item.to_dict()), 201
