from flask import Blueprint, jsonify

from libraryhub.services.auth_service import AuthService
from libraryhub.utils.decorators import admin_required

user_bp = Blueprint("users", __name__)


@user_bp.get("")
@admin_required
def list_users():
    return jsonify({"success": True, "data": [u.to_dict() for u in AuthService.list_users()]})


@user_bp.get("/<int:user_id>")
@admin_required
def get_user(user_id: int):
    return jsonify({"success": True, "data": AuthService.get_user(user_id).to_dict()})
