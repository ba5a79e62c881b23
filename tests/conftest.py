import pytest
from sqlalchemy import select

from libraryhub import create_app
from libraryhub.config import TestConfig
from libraryhub.extensions import db
from libraryhub.models.book import Book
from libraryhub.services.auth_service import AuthService
from libraryhub.services.catalog_service import CatalogService
from libraryhub.utils.auth import Principal

PASSWORD = "password123"


@pytest.fixture
def app(tmp_path):
    # file database so worker threads in the ledger tests share it
    app = create_app(TestConfig, {"SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'library.db'}"})
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(email=None, role="user"):
        counter["n"] += 1
        email = email or f"member{counter['n']}@example.com"
        return AuthService.register(email, PASSWORD, role=role)

    return _make


@pytest.fixture
def principal_for():
    def _principal(user):
        return Principal(user_id=user.id, role=user.role)

    return _principal


@pytest.fixture
def make_book(app):
    counter = {"n": 0}

    def _make(total_copies=1, **fields):
        counter["n"] += 1
        data = {
            "title": f"Book {counter['n']}",
            "author": "Ann Author",
            "isbn": f"978-0-{counter['n']:06d}",
            "total_copies": total_copies,
        }
        data.update(fields)
        return CatalogService.create_book(data)

    return _make


@pytest.fixture
def auth_headers(app):
    """Log in through the API and return a bearer header for that user."""
    login_client = app.test_client(use_cookies=False)

    def _headers(user):
        resp = login_client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['access_token']}"}

    return _headers


@pytest.fixture
def copies(app):
    """Read available_copies straight from the table, bypassing the identity map."""
    def _read(book_id):
        return db.session.execute(select(Book.available_copies).where(Book.id == book_id)).scalar_one()

    return _read
