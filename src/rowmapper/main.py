from __future__ import annotations

import sys
from datetime import date
from typing import Optional

import psycopg
import typer
from rich.console import Console

from rowmapper.config import get_settings
from rowmapper.domain.models import User
from rowmapper.errors import RowMapperError
from rowmapper.infrastructure.db_factory import open_connection
from rowmapper.mapping.entity_manager import EntityManager
from rowmapper.mapping.statements import where
from rowmapper.reporter import print_records
from rowmapper.utils.logging import configure_logging

app = typer.Typer(help="rowmapper CLI.")


def _demo_users() -> list[User]:
    return [
        User(username="james", password="password", age=32, registration_date=date(2016, 11, 1)),
        User(username="john", password="password", age=17, registration_date=date(2019, 5, 7)),
        User(username="robert", password="password", age=41, registration_date=date(2017, 9, 4)),
    ]


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"env={settings.app_env} log_level={settings.log_level} "
        f"inline_literals={settings.inline_literals}"
    )


@app.command()
def demo(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Database user (default from settings)."),
    password: Optional[str] = typer.Option(
        None, "--password", "-p", help="Database password (default from settings)."
    ),
    db_name: Optional[str] = typer.Option(None, "--db-name", "-d", help="Database name (default from settings)."),
) -> None:
    """
    Persist three users into the `users` table and query them back.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    overrides = {"db_user": user, "db_password": password, "db_name": db_name}
    settings = settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    console = Console()
    try:
        with open_connection(settings=settings) as conn:
            em = EntityManager(conn, inline_literals=settings.inline_literals)
            for record in _demo_users():
                em.persist(record)
            typer.echo(f"Persisted users into '{User.__tablename__}'.")

            first = em.find_first(User)
            typer.echo(f"The first user: {first.username}")

            first_under_18 = em.find_first(User, where("age", "<", 18))
            typer.echo(f"The first user under 18 years old: {first_under_18.username}")

            print_records("All persisted users", em.find(User), console=console)
            print_records("Users older than 18", em.find(User, where("age", ">", 18)), console=console)
    except (RowMapperError, psycopg.Error) as exc:
        typer.echo(f"{type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
