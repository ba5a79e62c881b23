from libraryhub.extensions import db
from libraryhub.utils.timeutil import utcnow, isoformat

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)

    role = db.Column(db.String(20), nullable=False, default=ROLE_USER)  # user/admin

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        # password_hash never leaves the server
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "created_at": isoformat(self.created_at),
        }
