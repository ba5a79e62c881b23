from dataclasses import dataclass

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity

from libraryhub.extensions import jwt
from libraryhub.models.user import ROLE_ADMIN, ROLE_USER


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, handed explicitly to every service call."""

    user_id: int
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def current_principal() -> Principal:
    """Build the principal from the token verified for this request."""
    user_id = int(get_jwt_identity())
    role = (get_jwt() or {}).get("role", ROLE_USER)
    return Principal(user_id=user_id, role=role)


def _unauthorized(message: str):
    return jsonify({"success": False, "error": "unauthorized", "message": message}), 401


@jwt.unauthorized_loader
def _missing_token(reason):
    return _unauthorized(f"Authentication required: {reason}")


@jwt.invalid_token_loader
def _invalid_token(reason):
    return _unauthorized(f"Invalid token: {reason}")


@jwt.expired_token_loader
def _expired_token(_header, _payload):
    return _unauthorized("Token has expired")
