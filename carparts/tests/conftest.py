# carparts/tests/conftest.py
import pytest

from carparts.db.session import get_session, reset_engine
from carparts.db.auto_init import auto_init
from carparts.tests.factories import make_user, login


@pytest.fixture()
def database(tmp_path, monkeypatch):
    """A fresh SQLite file per test, with every table created."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    reset_engine()
    auto_init()
    yield
    reset_engine()


@pytest.fixture()
def db(database):
    session = get_session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def app(database, tmp_path):
    from carparts.app_factory import create_app

    return create_app(
        "testing",
        config_overrides={
            "ADMIN_SECRET_KEY": "let-me-in",
            "SESSION_FILE_DIR": str(tmp_path / "sessions"),
        },
    )


@pytest.fixture()
def alice_id(database):
    return make_user("alice")


@pytest.fixture()
def bob_id(database):
    return make_user("bob")


@pytest.fixture()
def alice(app, alice_id):
    client = app.test_client()
    assert login(client, "alice").status_code == 200
    return client


@pytest.fixture()
def bob(app, bob_id):
    client = app.test_client()
    assert login(client, "bob").status_code == 200
    return client


@pytest.fixture()
def admin(app):
    make_user("root", admin=True)
    client = app.test_client()
    assert login(client, "root").status_code == 200
    return client
