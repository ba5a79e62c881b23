from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, set_access_cookies, unset_jwt_cookies

from libraryhub.schemas import AdminRegisterIn, LoginIn, RegisterIn, parse
from libraryhub.services.auth_service import AuthService
from libraryhub.utils.auth import current_principal

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/register", endpoint="auth_register")
def register():
    payload = parse(RegisterIn, request.get_json(silent=True))
    # role is never taken from the request body here
    user = AuthService.register(**payload.model_dump())
    return jsonify({"success": True, "data": user.to_dict()}), 201


@auth_bp.post("/admin/register", endpoint="auth_admin_register")
def register_admin():
    payload = parse(AdminRegisterIn, request.get_json(silent=True))
    user = AuthService.register_admin(**payload.model_dump())
    return jsonify({"success": True, "data": user.to_dict()}), 201


@auth_bp.post("/login", endpoint="auth_login")
def login():
    payload = parse(LoginIn, request.get_json(silent=True))
    token, user = AuthService.login(payload.email, payload.password)

    resp = jsonify({"success": True, "access_token": token, "data": user.to_dict()})
    set_access_cookies(resp, token)
    return resp


@auth_bp.post("/logout", endpoint="auth_logout")
def logout():
    resp = jsonify({"success": True, "message": "Logged out"})
    unset_jwt_cookies(resp)
    return resp


@auth_bp.get("/me", endpoint="auth_me")
@jwt_required()
def me():
    user = AuthService.get_user(current_principal().user_id)
    return jsonify({"success": True, "data": user.to_dict()})
