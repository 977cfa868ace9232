"""Shared fixtures: an app bound to in-memory SQLite with a recording notifier."""

import pytest

from skybooking import create_app, db

from .mocks import FakeNotifier


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def app(notifier):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "NOTIFIER": notifier,
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
