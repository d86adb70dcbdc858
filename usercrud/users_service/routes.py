"""
Users service route handlers.

Provides routes for:
- Create user (POST /users)
- List users (GET /users)
- Fetch one user (GET /users/<user_id>)
- Update one user (PUT /users/<user_id>)
- Delete one user (DELETE /users/<user_id>)
"""

import logging
from typing import Any, Dict, Optional

import psycopg2
from flask import Blueprint, jsonify, request, Response

from usercrud.common.utils import HandlerResult, decode_body, parse_id, text_error
from usercrud.database.db_connection import get_db

users_bp = Blueprint("users", __name__)

USER_FIELDS = ("name", "email")


# --- REQUEST LOGGING ---
@users_bp.before_request
def before_request() -> None:
    logging.info(f"[Users] Incoming {request.method} {request.path}")


@users_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Users] Response {response.status}")
    return response


# --- CREATE USER ---
@users_bp.route("/users", methods=["POST"])
def create_user() -> HandlerResult:
    """
    Create a new user. The id is assigned by the database.

    Expects a JSON body with:
    - name (str)
    - email (str): Unique across users.

    Returns:
        201: The created user, including its id.
        400: Body is not a JSON object of strings.
        500: Database error (duplicate email included).
    """
    data = decode_body(USER_FIELDS)
    if data is None:
        return text_error("Invalid request body", 400)

    sql = """
        INSERT INTO users (name, email)
        VALUES (%s, %s)
        RETURNING id, name, email;
    """

    try:
        with get_db().connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (data["name"], data["email"]))
                user = dict(cur.fetchone())
    except psycopg2.Error as e:
        logging.error(f"Error creating user: {e}")
        return text_error("Failed to create user", 500)

    return jsonify(user), 201


# --- LIST USERS ---
@users_bp.route("/users", methods=["GET"])
def list_users() -> HandlerResult:
    """
    Return every user, ordered by id.

    Returns:
        200: List of user objects (empty if there are none).
        500: Database error.
    """
    sql = "SELECT id, name, email FROM users ORDER BY id;"

    try:
        with get_db().connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql)
                users = [dict(row) for row in cur.fetchall()]
    except psycopg2.Error as e:
        logging.error(f"Error listing users: {e}")
        return text_error("Failed to fetch users", 500)

    return jsonify(users), 200


def _fetch_user(user_id: int) -> Optional[Dict[str, Any]]:
    sql = "SELECT id, name, email FROM users WHERE id = %s;"
    with get_db().connection() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, (user_id,))
            row = cur.fetchone()
    return dict(row) if row else None


# --- FETCH USER ---
@users_bp.route("/users/<rest:user_id>", methods=["GET"])
def get_user(user_id: str) -> HandlerResult:
    """
    Get a single user by id.

    Returns:
        200: User object.
        404: No user with that id (malformed ids included).
        500: Database error.
    """
    pk = parse_id(user_id)
    if pk is None:
        return text_error("User not found", 404)

    try:
        user = _fetch_user(pk)
    except psycopg2.Error as e:
        logging.error(f"Error fetching user {pk}: {e}")
        return text_error("Failed to fetch user", 500)

    if not user:
        return text_error("User not found", 404)

    return jsonify(user), 200


# --- UPDATE USER ---
@users_bp.route("/users/<rest:user_id>", methods=["PUT"])
def update_user(user_id: str) -> HandlerResult:
    """
    Replace a user's name and email. The id is never changed.

    The user must exist before the body is looked at, so a bad body sent
    to an unknown id is still a 404.

    Returns:
        200: The updated user.
        400: Body is not a JSON object of strings.
        404: No user with that id.
        500: Database error.
    """
    pk = parse_id(user_id)
    if pk is None:
        return text_error("User not found", 404)

    try:
        user = _fetch_user(pk)
    except psycopg2.Error as e:
        logging.error(f"Error fetching user {pk}: {e}")
        return text_error("Failed to fetch user", 500)

    if not user:
        return text_error("User not found", 404)

    data = decode_body(USER_FIELDS)
    if data is None:
        return text_error("Invalid request body", 400)

    user["name"] = data["name"]
    user["email"] = data["email"]

    # Upsert by primary key
    sql = """
        INSERT INTO users (id, name, email)
        VALUES (%s, %s, %s)
        ON CONFLICT (id) DO UPDATE
        SET name = EXCLUDED.name, email = EXCLUDED.email
        RETURNING id, name, email;
    """

    try:
        with get_db().connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (user["id"], user["name"], user["email"]))
                user = dict(cur.fetchone())
    except psycopg2.Error as e:
        logging.error(f"Error updating user {pk}: {e}")
        return text_error("Failed to update user", 500)

    return jsonify(user), 200


# --- DELETE USER ---
@users_bp.route("/users/<rest:user_id>", methods=["DELETE"])
def delete_user(user_id: str) -> HandlerResult:
    """
    Delete a user by id.

    Returns:
        204: Deleted, no body.
        404: No row was deleted.
        500: Database error.
    """
    pk = parse_id(user_id)
    if pk is None:
        return text_error("User not found", 404)

    try:
        with get_db().connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM users WHERE id = %s;", (pk,))
                deleted = cur.rowcount
    except psycopg2.Error as e:
        logging.error(f"Error deleting user {pk}: {e}")
        return text_error("Failed to delete user", 500)

    if deleted == 0:
        return text_error("User not found", 404)

    return Response(status=204)
