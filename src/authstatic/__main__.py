# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""auth-static admin entrypoint.

Run with:
  python -m authstatic init-db --dsn prod.db
  python -m authstatic create-user --email webmaster@example.com --dsn prod.db
  python -m authstatic gen-key
  python -m authstatic web --hashkey ... --blockkey ...
"""

from __future__ import annotations

import logging
import secrets

import click
import uvicorn

from authstatic.app import create_app
from authstatic.auth.users import UserService
from authstatic.config import DEFAULT_MAX_AGE_SECONDS, KEY_LENGTH, Config
from authstatic.errors import ConfigError, UserError
from authstatic.infra.database import create_db_engine, init_db

logger = logging.getLogger(__name__)

dsn_option = click.option("--dsn", envvar="AUTHSTATIC_DSN", default="prod.db", show_default=True,
                          help="Data source name: SQLite file, ':memory:' or SQLAlchemy URL.")


@click.group()
@click.option("--log-level", envvar="AUTHSTATIC_LOG_LEVEL", default="INFO", show_default=True)
def cli(log_level: str) -> None:
    """Administer and run the auth-static gatekeeper."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("init-db")
@dsn_option
def init_db_command(dsn: str) -> None:
    """Create the users table if absent."""
    click.echo(f'init db with dsn "{dsn}"')
    init_db(create_db_engine(dsn))
    click.echo("init db successful")


@cli.command("create-user")
@click.option("--email", required=True, help="Email of the invited user.")
@dsn_option
def create_user(email: str, dsn: str) -> None:
    """Invite a user (or re-invite, clearing their password) and print the signup code."""
    engine = create_db_engine(dsn)
    init_db(engine)
    try:
        code = UserService(engine).create(email)
    except UserError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f'successfully saved user with email "{email}" and code "{code}"')


@cli.command("gen-key")
def gen_key() -> None:
    """Print two independent random keys suitable for --hashkey and --blockkey."""
    for _ in range(2):
        click.echo(secrets.token_hex(KEY_LENGTH // 2))


@cli.command("web")
@click.option("--host", envvar="AUTHSTATIC_HOST", default="localhost", show_default=True)
@click.option("--port", envvar="AUTHSTATIC_PORT", default=9000, show_default=True, type=int)
@dsn_option
@click.option("--hashkey", envvar="AUTHSTATIC_HASH_KEY", default="", help="Cookie authentication key (32 chars).")
@click.option("--blockkey", envvar="AUTHSTATIC_BLOCK_KEY", default="", help="Cookie encryption key (32 chars).")
@click.option("--secure/--no-secure", envvar="AUTHSTATIC_SECURE", default=False, show_default=True,
              help="Set the Secure flag on the session cookie.")
@click.option("--max-age", envvar="AUTHSTATIC_MAX_AGE", default=DEFAULT_MAX_AGE_SECONDS, show_default=True,
              type=int, help="Session lifetime in seconds.")
@click.option("--session-name", envvar="AUTHSTATIC_SESSION_NAME", default="auth-static", show_default=True)
@click.option("--external", envvar="AUTHSTATIC_EXTERNAL", default="/private/", show_default=True,
              help="Protected area path visible to users.")
@click.option("--internal", envvar="AUTHSTATIC_INTERNAL", default="/internal/", show_default=True,
              help="Protected area path only reachable by internal redirect.")
@click.option("--home", envvar="AUTHSTATIC_HOME", default="main.html", show_default=True,
              help="Protected area home page, relative to --external.")
def web(host: str, port: int, dsn: str, hashkey: str, blockkey: str, secure: bool, max_age: int,
        session_name: str, external: str, internal: str, home: str) -> None:
    """Start the web server."""
    config = Config(
        hash_key=hashkey,
        block_key=blockkey,
        secure=secure,
        session_name=session_name,
        session_max_age=max_age,
        protected_external=external,
        protected_internal=internal,
        protected_home=home,
        dsn=dsn,
        host=host,
        port=port,
    )
    try:
        config.validate()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    engine = create_db_engine(config.dsn)
    init_db(engine)
    app = create_app(config, UserService(engine))

    logger.info("Server running at http://%s:%d", config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    cli(prog_name="auth-static")
