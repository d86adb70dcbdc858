import pytest
from unittest.mock import MagicMock

from usercrud.gateway.server import create_app


@pytest.fixture
def mock_db():
    """
    Mocks the Database handle, its pooled connection and cursor.
    """
    mock_conn = MagicMock()
    mock_cursor = MagicMock()

    # Setup the context manager for cursor
    mock_cursor.__enter__.return_value = mock_cursor
    mock_cursor.__exit__.return_value = None
    mock_conn.cursor.return_value = mock_cursor

    # db.connection() is a context manager yielding the connection
    db = MagicMock()
    db.connection.return_value.__enter__.return_value = mock_conn
    db.connection.return_value.__exit__.return_value = None

    return db, mock_conn, mock_cursor


@pytest.fixture
def app(mock_db):
    db, _, _ = mock_db
    app = create_app(db)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
