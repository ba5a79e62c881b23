from functools import wraps

from flask_jwt_extended import verify_jwt_in_request, get_jwt

from libraryhub.errors import Forbidden
from libraryhub.models.user import ROLE_ADMIN


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = (get_jwt() or {}).get("role")
            if role not in roles:
                raise Forbidden(f"Requires role: {', '.join(roles)}")
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def admin_required(fn):
    return role_required(ROLE_ADMIN)(fn)
