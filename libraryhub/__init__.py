import click
from flask import Flask, jsonify

from libraryhub.config import Config
from libraryhub.extensions import db, migrate, jwt
from libraryhub.errors import register_error_handlers


def create_app(config_object=Config, overrides: dict = None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # mappers and token loaders register on import
    from libraryhub.models import user, category, book, borrowing  # noqa: F401
    from libraryhub.utils import auth  # noqa: F401

    register_error_handlers(app)

    from libraryhub.controllers.auth_controller import auth_bp
    from libraryhub.controllers.category_controller import category_bp
    from libraryhub.controllers.book_controller import book_bp
    from libraryhub.controllers.borrowing_controller import borrowing_bp
    from libraryhub.controllers.user_controller import user_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(category_bp, url_prefix="/categories")
    app.register_blueprint(book_bp, url_prefix="/books")
    app.register_blueprint(borrowing_bp, url_prefix="/borrowings")
    app.register_blueprint(user_bp, url_prefix="/users")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    @app.cli.command("init-db")
    def init_db():
        """Create all tables (use `flask db upgrade` once migrations exist)."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("sweep-overdue")
    def sweep_overdue():
        """Run the overdue sweep once."""
        from libraryhub.services.ledger_service import LedgerService
        click.echo(f"Marked {LedgerService.sweep_overdue()} borrowing(s) overdue.")

    from libraryhub.tasks.scheduler import start_scheduler
    start_scheduler(app)

    return app
