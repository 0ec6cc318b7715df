import logging
import time

import click
from flask import Flask, current_app, jsonify
from flask.cli import with_appcontext
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from . import api_keys
from .config import PORT, Config, configure_logging
from .endpoints import bp
from .keygen import DEFAULT_KEY_SIZE, PasswordRequirementsError, generate_password, generate_secure_api_key

logger = logging.getLogger(__name__)


def create_app(overrides=None):
    configure_logging()
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.extensions["api_key_engine"] = api_keys.init_key_store(app.config["DATABASE_URL"])
    app.before_request(api_keys.require_api_key)

    app.add_url_rule('/', view_func=root, methods=['GET'])
    app.add_url_rule('/api/health/live', view_func=health_live, methods=['GET'])
    app.add_url_rule('/api/health/ready', view_func=health_ready, methods=['GET'])
    app.register_blueprint(bp)

    app.cli.add_command(create_api_key_command)
    app.cli.add_command(revoke_api_key_command)
    app.cli.add_command(list_api_keys_command)
    app.cli.add_command(generate_password_command)
    return app


# --- Root and health endpoints ---
def root():
    return jsonify({"message": "Google Sheets gateway is running. Send the x-api-key header to use the API endpoints."})


def health_live():
    return jsonify({"status": "Healthy"})


def health_ready():
    engine = current_app.extensions["api_key_engine"]
    start_time = time.time()
    status, error = "Healthy", "none"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"HEALTH: database check failed: {e}")
        status, error = "Unhealthy", str(e)
    check = {
        "name": "database",
        "status": status,
        "exception": error,
        "duration": f"{time.time() - start_time:.4f}s",
    }
    return jsonify({"status": status, "checks": [check]}), 200 if status == "Healthy" else 503


# --- CLI ---
@click.command("create-api-key")
@click.option("--size", default=DEFAULT_KEY_SIZE, show_default=True, type=click.IntRange(min=1),
              help="Key size in random bytes (32 or more recommended).")
@with_appcontext
def create_api_key_command(size):
    """Generate a key, store it as active and print it."""
    key = generate_secure_api_key(size)
    try:
        api_keys.add_api_key(current_app.extensions["api_key_engine"], key)
    except IntegrityError as e:
        raise click.ClickException(f"Could not store the generated key: {e}") from e
    click.echo(key)


@click.command("revoke-api-key")
@click.argument("key")
@with_appcontext
def revoke_api_key_command(key):
    """Deactivate a stored key."""
    if not api_keys.deactivate_api_key(current_app.extensions["api_key_engine"], key):
        raise click.ClickException("No active API key matched.")
    click.echo("API key revoked.")


@click.command("list-api-keys")
@with_appcontext
def list_api_keys_command():
    """List stored keys (masked)."""
    for row in api_keys.list_api_keys(current_app.extensions["api_key_engine"]):
        state = "active" if row["is_active"] else "revoked"
        click.echo(f"{row['id']}\t{row['key'][:6]}...\t{state}\t{row['created_at']}")


@click.command("generate-password")
@click.option("--length", required=True, type=int)
@click.option("--digits", default=0, show_default=True, type=int)
@click.option("--symbols", default=0, show_default=True, type=int)
@click.option("--no-upper-case", is_flag=True, default=False)
@click.option("--allow-repeats", is_flag=True, default=False)
def generate_password_command(length, digits, symbols, no_upper_case, allow_repeats):
    """Print a random password with the requested composition."""
    try:
        password = generate_password(length, digits, symbols, no_upper_case, allow_repeats)
    except PasswordRequirementsError as e:
        raise click.ClickException(str(e)) from e
    click.echo(password)


if __name__ == '__main__':
    app = create_app()
    logger.info(f"Starting Flask app on port {PORT}.")
    # For production, use a WSGI server like Gunicorn: gunicorn -w 4 -b 0.0.0.0:{port} 'gsheets_gateway.app:create_app()'
    app.run(host='0.0.0.0', port=PORT)
