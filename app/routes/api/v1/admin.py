from flask import Blueprint, jsonify, request
from flask_login import current_user

from app.decorators import role_required
from app.extensions import cache
from app.services import (
    CatalogService,
    CommissionService,
    LedgerService,
    MaidService,
    PlatformService,
    WithdrawalService,
)

api_admin_bp = Blueprint("api_admin", __name__)

STAFF = ("admin", "super_admin")


@api_admin_bp.post("/services")
@role_required(*STAFF)
def create_service():
    payload = request.get_json(silent=True) or {}
    service = CatalogService.create_service(
        current_user,
        payload.get("name"),
        payload.get("basePrice"),
        description=payload.get("description"),
    )
    cache.clear()
    return jsonify(CatalogService.to_dict(service)), 201


@api_admin_bp.post("/commission-rules")
@role_required(*STAFF)
def create_commission_rule():
    payload = request.get_json(silent=True) or {}
    rule = CommissionService.create_rule(
        current_user,
        payload.get("serviceId"),
        payload.get("commissionPercentage"),
        platform_fee_pct=payload.get("platformFeePercentage", 0),
        gst_pct=payload.get("gstPercentage", 18),
        effective_from=payload.get("effectiveFrom"),
        effective_to=payload.get("effectiveTo"),
    )
    return jsonify({"id": rule.id, "service_id": rule.service_id}), 201


@api_admin_bp.get("/withdrawals")
@role_required(*STAFF)
def pending_withdrawals():
    return jsonify([item.to_dict() for item in WithdrawalService.list_pending()])


@api_admin_bp.post("/withdrawals/<int:request_id>/approve")
@role_required(*STAFF)
def approve_withdrawal(request_id):
    return jsonify(WithdrawalService.approve(current_user, request_id).to_dict())


@api_admin_bp.post("/withdrawals/<int:request_id>/reject")
@role_required(*STAFF)
def reject_withdrawal(request_id):
    payload = request.get_json(silent=True) or {}
    return jsonify(WithdrawalService.reject(current_user, request_id, payload.get("reason")).to_dict())


@api_admin_bp.patch("/maids/<int:maid_id>/verification")
@role_required(*STAFF)
def set_verification(maid_id):
    payload = request.get_json(silent=True) or {}
    maid = MaidService.set_verification_status(current_user, maid_id, payload.get("status"))
    return jsonify({"id": maid.id, "verification_status": maid.verification_status})


@api_admin_bp.put("/settings/<key>")
@role_required("super_admin")
def update_setting(key):
    payload = request.get_json(silent=True) or {}
    setting = PlatformService.set_setting(key, payload.get("value", ""))
    return jsonify({"key": setting.key, "value": setting.value})


@api_admin_bp.get("/wallets/<int:wallet_id>/audit")
@role_required(*STAFF)
def audit_wallet(wallet_id):
    problems = LedgerService.audit_wallet(wallet_id)
    return jsonify({"walletId": wallet_id, "consistent": not problems, "problems": problems})
