"""
tests/conftest.py
"""
from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest
from flask.testing import FlaskClient

# The single-file app lives here:
from workjournal.journal import app, connect, get_db, init_db


@pytest.fixture(scope="session")
def _tmp_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """One temp file for the whole test session (faster than per-test)."""
    return tmp_path_factory.mktemp("data") / "test.sqlite3"


@pytest.fixture(scope="session", autouse=True)
def _configure_app(_tmp_db_path: Path) -> None:
    """
    Configure the Flask app *once* before the first test is collected.
    """
    app.config.update(
        TESTING=True,
        DATABASE=str(_tmp_db_path),
        ADMIN_EMAIL="sam@buildui.com",
        ADMIN_PASSWORD="password",
        MUTATION_DELAY=0,
        REQUIRE_ADMIN_FOR_EDITS=True,
    )
    with app.app_context():
        init_db()


@pytest.fixture(autouse=True)
def _empty_journal() -> None:
    """Every test starts with no entries."""
    with app.app_context():
        db = get_db()
        db.execute("DELETE FROM entry")
        db.commit()


@pytest.fixture
def client() -> Generator[FlaskClient, None, None]:
    """
    Gives each test an isolated application context *and* test client.
    """
    with app.test_client() as client:
        with app.app_context():
            yield client


@pytest.fixture
def admin_client(client: FlaskClient) -> FlaskClient:
    """A client whose session already carries the admin flag."""
    with client.session_transaction() as sess:
        sess["is_admin"] = True
    return client


@pytest.fixture
def memory_db():
    """A throw-away in-memory database with the schema applied."""
    db = connect(":memory:")
    init_db(db)
    yield db
    db.close()
