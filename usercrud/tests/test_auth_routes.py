import psycopg2.errors
from argon2 import PasswordHasher
from argon2.exceptions import HashingError


def test_register_success(client, mock_db, mocker):
    _, _, mock_cursor = mock_db

    # Mock PasswordHasher instance
    mock_ph = mocker.patch("usercrud.auth_service.routes.ph")
    mock_ph.hash.return_value = "hashed_secret"

    # RETURNING id, email, password
    mock_cursor.fetchone.return_value = {"id": 1, "email": "a@x.com", "password": "hashed_secret"}

    response = client.post("/register", json={"email": "a@x.com", "password": "secret"})

    assert response.status_code == 201
    data = response.get_json()
    assert data["id"] == 1
    assert data["email"] == "a@x.com"
    assert data["password"] == "hashed_secret"

    mock_ph.hash.assert_called_once_with("secret")

    # Verify DB interaction
    args, _ = mock_cursor.execute.call_args
    assert args[1][0] == "a@x.com"  # email
    assert args[1][1] == "hashed_secret"  # password hash


def test_register_stores_real_hash(client, mock_db):
    _, _, mock_cursor = mock_db

    # Echo back whatever was inserted
    def fake_execute(sql, params):
        mock_cursor.fetchone.return_value = {"id": 1, "email": params[0], "password": params[1]}

    mock_cursor.execute.side_effect = fake_execute

    response = client.post("/register", json={"email": "a@x.com", "password": "secret"})

    assert response.status_code == 201
    stored = response.get_json()["password"]
    assert stored != "secret"
    assert stored.startswith("$argon2")
    assert PasswordHasher().verify(stored, "secret")


def test_register_invalid_body(client, mock_db):
    _, _, mock_cursor = mock_db

    response = client.post("/register", data="{", content_type="application/json")

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "Invalid request body\n"
    assert not mock_cursor.execute.called


def test_register_non_string_password(client, mock_db):
    _, _, mock_cursor = mock_db

    response = client.post("/register", json={"email": "a@x.com", "password": 12345678})

    assert response.status_code == 400
    assert not mock_cursor.execute.called


def test_register_hashing_failure(client, mock_db, mocker):
    _, _, mock_cursor = mock_db
    mock_ph = mocker.patch("usercrud.auth_service.routes.ph")
    mock_ph.hash.side_effect = HashingError("out of memory")

    response = client.post("/register", json={"email": "a@x.com", "password": "secret"})

    assert response.status_code == 500
    assert response.get_data(as_text=True) == "Failed to hash password\n"
    assert not mock_cursor.execute.called


def test_register_duplicate_email(client, mock_db, mocker):
    _, _, mock_cursor = mock_db
    mock_ph = mocker.patch("usercrud.auth_service.routes.ph")
    mock_ph.hash.return_value = "hashed_secret"
    mock_cursor.execute.side_effect = psycopg2.errors.UniqueViolation("duplicate key")

    response = client.post("/register", json={"email": "a@x.com", "password": "secret"})

    assert response.status_code == 500
    assert response.get_data(as_text=True) == "Failed to create user\n"


def test_register_wrong_method(client):
    response = client.get("/register")
    assert response.status_code == 405
    assert response.get_data(as_text=True) == "Method not allowed\n"
