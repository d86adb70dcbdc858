"""
Authentication service route handlers.

Provides routes for:
- Credentialed signup (POST /register)

Passwords are hashed with Argon2 before they reach the database.
"""

import logging

import psycopg2
from argon2 import PasswordHasher
from argon2.exceptions import HashingError
from flask import Blueprint, jsonify, request, Response

from usercrud.common.utils import HandlerResult, decode_body, text_error
from usercrud.database.db_connection import get_db

auth_bp = Blueprint("auth", __name__)
ph = PasswordHasher()

REGISTRATION_FIELDS = ("email", "password")


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    """
    Log the method and path of every request to the authentication service.
    """
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    """
    Log the response status code for every request.

    Args:
        response (Response): The Flask response object.

    Returns:
        Response: The passed-through response object.
    """
    logging.info(f"[Auth] Response {response.status}")
    return response


# --- REGISTER ---
@auth_bp.route("/register", methods=["POST"])
def register() -> HandlerResult:
    """
    Register a new set of credentials.

    Expects a JSON body with:
    - email (str): Unique across registrations.
    - password (str): Plaintext; only its hash is stored.

    Returns:
        201: The stored registration (id, email, password hash).
        400: Body is not a JSON object of strings.
        500: Hashing or database error (duplicate email included).
    """
    data = decode_body(REGISTRATION_FIELDS)
    if data is None:
        return text_error("Invalid request body", 400)

    # Hash password using Argon2
    try:
        pw_hash = ph.hash(data["password"])
    except HashingError as e:
        logging.error(f"Password hashing failed: {e}")
        return text_error("Failed to hash password", 500)

    sql = """
        INSERT INTO registrations (email, password)
        VALUES (%s, %s)
        RETURNING id, email, password;
    """

    try:
        with get_db().connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (data["email"], pw_hash))
                registration = dict(cur.fetchone())
    except psycopg2.Error as e:
        logging.error(f"Registration failed: {e}")
        return text_error("Failed to create user", 500)

    return jsonify(registration), 201
