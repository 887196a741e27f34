import re

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from app.errors import InvalidArgument
from app.extensions import limiter
from app.services import AuthService, OtpService

api_auth_bp = Blueprint("api_auth", __name__)


@api_auth_bp.post("/otp/request")
@limiter.limit("5 per minute")
def request_otp():
    payload = request.get_json(silent=True) or {}
    result = OtpService.issue(payload.get("phone", ""))
    return jsonify({"success": result["success"], "message": result["message"], "expiresIn": result["expires_in"]})


@api_auth_bp.post("/otp/verify")
@limiter.limit("15 per minute")
def verify_otp():
    payload = request.get_json(silent=True) or {}
    otp = str(payload.get("otp", "")).strip()
    if not re.fullmatch(r"\d{6}", otp):
        raise InvalidArgument("OTP must be 6 digits.")
    user, created = AuthService.login_with_otp(payload.get("phone", ""), otp)
    login_user(user, remember=True)
    return jsonify({"success": True, "isNewUser": created, "user": user.to_dict()})


@api_auth_bp.post("/login")
@limiter.limit("15 per minute")
def staff_login():
    payload = request.get_json(silent=True) or {}
    user = AuthService.authenticate_staff(payload.get("email", ""), payload.get("password", ""))
    login_user(user)
    return jsonify(user.to_dict())


@api_auth_bp.post("/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})


@api_auth_bp.get("/me")
@login_required
def me():
    return jsonify(current_user.to_dict())
