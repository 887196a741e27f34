import os

import click
import sentry_sdk
from dotenv import load_dotenv
from flask import Flask, jsonify
from sentry_sdk.integrations.flask import FlaskIntegration
from werkzeug.middleware.proxy_fix import ProxyFix

from app.config import config_by_env
from app.errors import AppError, register_error_handlers
from app.extensions import bcrypt, cache, db, limiter, login_manager, migrate
from app.models import User
from app.routes.api.v1 import api_v1_bp
from app.services import AuthService, OtpService


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "Unauthorized", "code": "unauthorized"}), 401


def create_app(env=None, overrides=None):
    load_dotenv()
    env = env or os.getenv("FLASK_ENV", "development")

    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_by_env.get(env, config_by_env["development"]))
    app.config.update(overrides or {})
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if db_uri.startswith("sqlite:///") and not db_uri.startswith("sqlite:////") and db_uri != "sqlite:///:memory:":
        relative_path = db_uri.replace("sqlite:///", "", 1)
        absolute_path = os.path.join(project_root, relative_path)
        os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{absolute_path}"

    upload_dir = str(app.config["UPLOAD_DIR"])
    if not os.path.isabs(upload_dir):
        upload_dir = os.path.join(project_root, upload_dir)
    app.config["UPLOAD_DIR"] = upload_dir
    os.makedirs(upload_dir, exist_ok=True)

    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    cache.init_app(app)
    limiter.init_app(app)
    login_manager.init_app(app)
    _init_sentry(app, env)

    register_error_handlers(app)
    app.register_blueprint(api_v1_bp, url_prefix="/api/v1")
    _register_commands(app)

    if env == "development":
        with app.app_context():
            db.create_all()

    return app


def _init_sentry(app, env):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.05")),
        environment=env,
    )
    app.logger.info("Sentry initialized.")


def _register_commands(app):
    @app.cli.group("otp")
    def otp_group():
        """One-time passcode maintenance."""

    @otp_group.command("purge")
    def purge_otp_sessions():
        """Delete expired OTP sessions."""
        removed = OtpService.purge_expired()
        click.echo(f"Removed {removed} expired OTP session(s).")

    @app.cli.command("create-admin")
    @click.option("--name", default="Admin")
    @click.option("--email", required=True)
    @click.password_option()
    @click.option("--super", "is_super", is_flag=True, help="Grant the super_admin role.")
    def create_admin(name, email, password, is_super):
        """Create a staff account that signs in with email and password."""
        role = "super_admin" if is_super else "admin"
        try:
            user = AuthService.create_staff_user(name, email, password, role)
        except AppError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(f"Created {user.role} {user.email} (id={user.id}).")
