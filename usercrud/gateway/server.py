"""
API gateway: combines the users and auth blueprints.
This is the process entrypoint.
"""

import logging
import os
import sys

import psycopg2
from dotenv import load_dotenv
from flask import Flask, Response, request
from flask_cors import CORS
from werkzeug.exceptions import MethodNotAllowed

from usercrud.auth_service.routes import auth_bp
from usercrud.common.utils import RestConverter, text_error
from usercrud.database.db_connection import Database
from usercrud.database.init_db import init_db
from usercrud.users_service.routes import users_bp

ENV_FILE = ".env"
PORT = 8080

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def create_app(db: Database) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        db (Database): Persistence handle shared by every request.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)
    app.extensions["db"] = db

    # Must exist before the blueprints add their rules
    app.url_map.converters["rest"] = RestConverter

    CORS(app, resources={
        r"/*": {
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type"],
        }
    })

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(users_bp)
    app.register_blueprint(auth_bp)

    @app.before_request
    def reject_head() -> None:
        # Werkzeug adds HEAD to every GET rule; only the listed verbs are served
        if request.method == "HEAD" and request.url_rule is not None:
            adapter = app.url_map.bind_to_environ(request.environ)
            raise MethodNotAllowed(valid_methods=adapter.allowed_methods())

    @app.errorhandler(MethodNotAllowed)
    def method_not_allowed(error: MethodNotAllowed) -> Response:
        response = text_error("Method not allowed", 405)
        allowed = [method for method in error.valid_methods or [] if method != "HEAD"]
        if allowed:
            response.headers["Allow"] = ", ".join(sorted(allowed))
        return response

    return app


def main() -> None:
    """
    Load .env, connect, sync the schema and serve on port 8080.
    Any startup failure aborts the process.
    """
    # An empty .env is valid; only a missing one is fatal
    if not os.path.isfile(ENV_FILE):
        logging.critical("Error loading .env file")
        sys.exit(1)
    load_dotenv(ENV_FILE)

    try:
        db = Database.connect()
        init_db(db)
    except psycopg2.Error as e:
        logging.critical(f"Failed to connect to the database: {e}")
        sys.exit(1)

    app = create_app(db)

    logging.info(f"Server is running on port {PORT}...")
    try:
        app.run(host="0.0.0.0", port=PORT, threaded=True)
    except OSError as e:
        logging.critical(f"Failed to start server: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
