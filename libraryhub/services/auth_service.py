import hmac

from flask import current_app
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError

from libraryhub.errors import Conflict, Forbidden, Unauthorized, NotFound
from libraryhub.extensions import db
from libraryhub.models.user import User, ROLE_USER, ROLE_ADMIN
from libraryhub.repositories.user_repo import UserRepo


class AuthService:
    @staticmethod
    def register(email: str, password: str, first_name=None, last_name=None, role: str = ROLE_USER):
        if UserRepo.get_by_email(email):
            raise Conflict("Email already in use")

        user = User(
            email=email.lower(),
            password_hash=generate_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        try:
            UserRepo.create(user)
        except IntegrityError:
            # another request registered the same email between the check and the insert
            db.session.rollback()
            raise Conflict("Email already in use")
        current_app.logger.info(f"[auth] Registered user id={user.id} role={user.role}")
        return user

    @staticmethod
    def register_admin(admin_secret: str, email: str, password: str, first_name=None, last_name=None):
        expected = current_app.config.get("ADMIN_SECRET_KEY") or ""
        if not expected or not hmac.compare_digest(admin_secret.encode(), expected.encode()):
            current_app.logger.warning(f"[auth] Rejected admin registration for {email}")
            raise Forbidden("Invalid admin registration key")
        return AuthService.register(email, password, first_name, last_name, role=ROLE_ADMIN)

    @staticmethod
    def login(email: str, password: str):
        user = UserRepo.get_by_email(email)
        if not user or not check_password_hash(user.password_hash, password):
            raise Unauthorized("Invalid email or password")

        token = create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "email": user.email},
        )
        return token, user

    @staticmethod
    def get_user(user_id: int):
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    def list_users():
        return UserRepo.list_all()
