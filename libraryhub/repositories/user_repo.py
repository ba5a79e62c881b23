from libraryhub.models.user import User
from libraryhub.extensions import db


class UserRepo:
    @staticmethod
    def get_by_email(email: str):
        return User.query.filter(db.func.lower(User.email) == email.lower()).first()

    @staticmethod
    def get_by_id(user_id: int):
        return db.session.get(User, user_id)

    @staticmethod
    def list_all():
        return User.query.order_by(User.id.asc()).all()

    @staticmethod
    def count() -> int:
        return User.query.count()

    @staticmethod
    def create(user: User):
        db.session.add(user)
        db.session.commit()
        return user
