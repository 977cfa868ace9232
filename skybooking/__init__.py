import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from dotenv import load_dotenv

from .logging_config import setup_logging

db = SQLAlchemy()


def create_app(config=None):
    load_dotenv()

    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL", "sqlite:///app.sqlite3")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SENDGRID_API_KEY"] = os.getenv("SENDGRID_API_KEY")
    app.config["SENDGRID_FROM_EMAIL"] = os.getenv("SENDGRID_FROM_EMAIL", "noreply@skywing.com")
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO")
    # tests and scripts override anything read from the environment
    app.config.update(config or {})

    if not app.config.get("TESTING"):
        setup_logging(app.config["LOG_LEVEL"])

    db.init_app(app)

    from .notifications import SendGridNotifier
    if "NOTIFIER" not in app.config:
        app.config["NOTIFIER"] = SendGridNotifier(
            app.config["SENDGRID_API_KEY"],
            from_email=app.config["SENDGRID_FROM_EMAIL"],
        )

    @app.route("/health")
    def health():
        return jsonify({"ok": True})

    # register blueprints
    from .booking import booking_bp
    app.register_blueprint(booking_bp)

    from .seat_routes import bp as seats_bp
    app.register_blueprint(seats_bp)

    from .my_bookings import bookings_bp
    app.register_blueprint(bookings_bp)

    # create tables
    with app.app_context():
        from . import models
        db.create_all()

    return app
