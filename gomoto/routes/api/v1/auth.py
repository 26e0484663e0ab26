from flask import Blueprint
from flask_login import current_user, login_required, login_user, logout_user

from gomoto.extensions import limiter
from gomoto.responses import api_response, json_body
from gomoto.serializers import serialize_user
from gomoto.services import AuthService

api_auth_bp = Blueprint("api_auth", __name__)


@api_auth_bp.post("/register")
@limiter.limit("20 per minute")
def api_register():
    payload = json_body()
    user = AuthService.register_user(
        username=payload.get("username", ""),
        email=payload.get("email", ""),
        password=payload.get("password", ""),
        full_name=payload.get("fullName", ""),
        phone=payload.get("phone", ""),
    )
    return api_response(serialize_user(user), "User registered successfully", 201)


@api_auth_bp.post("/login")
@limiter.limit("30 per minute")
def api_login():
    payload = json_body()
    user = AuthService.authenticate_user(payload.get("email", ""), payload.get("password", ""))
    login_user(user)
    return api_response({"user": serialize_user(user)}, "User logged in successfully")


@api_auth_bp.post("/logout")
@login_required
def api_logout():
    logout_user()
    return api_response({}, "User logged out successfully")


@api_auth_bp.get("/me")
@login_required
def api_me():
    return api_response(serialize_user(current_user), "User fetched successfully")


@api_auth_bp.put("/profile")
@login_required
def api_update_profile():
    payload = json_body()
    user = AuthService.update_profile(current_user._get_current_object(), payload)
    return api_response(serialize_user(user), "Profile updated successfully")
