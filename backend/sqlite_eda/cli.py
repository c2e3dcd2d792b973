"""Command line entry point: serve the API or profile a table from the shell."""

import json
import logging
import socket
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
import uvicorn

from sqlite_eda.core.config import Settings, get_settings
from sqlite_eda.core.database import SQLiteDatabase, create_database
from sqlite_eda.core.errors import EdaError
from sqlite_eda.core.logging import configure_logging
from sqlite_eda.core.sanitization import require_column_name, require_table_name
from sqlite_eda.core.schemas import StatisticsError
from sqlite_eda.services.inference import recommend_visualizations
from sqlite_eda.services.profiler import generate_table_profile
from sqlite_eda.services.statistics import generate_column_statistics

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3333
MAX_PORT_ATTEMPTS = 100

app = typer.Typer(
    name="sqlite-eda",
    help="SQLite exploratory data analysis - profile tables and suggest charts.",
    no_args_is_help=True,
)

DatabaseOption = Annotated[
    Optional[Path],
    typer.Option(
        "--database",
        "-d",
        help="Path to SQLite database file (defaults to DATABASE_PATH)",
        dir_okay=False,
    ),
]

TypeOption = Annotated[
    str,
    typer.Option("--type", "-t", help="Database type (only sqlite is implemented)"),
]


def find_available_port(start: int = DEFAULT_PORT, host: str = "127.0.0.1") -> int:
    """First port at or above ``start`` that can be bound on ``host``."""
    for port in range(start, min(start + MAX_PORT_ATTEMPTS, 65536)):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError:
                continue
            return port
    raise RuntimeError(f"No available port found between {start} and {start + MAX_PORT_ATTEMPTS - 1}")


def _settings_with(**overrides: Any) -> Settings:
    values = get_settings().model_dump()
    values.update({key: value for key, value in overrides.items() if value is not None})
    return Settings(**values)


def _open_database(settings: Settings) -> SQLiteDatabase:
    try:
        return create_database(settings.database_type, settings.database_path)
    except EdaError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def serve(
    database: DatabaseOption = None,
    port: Annotated[int, typer.Option("--port", "-p", help="First port to try")] = DEFAULT_PORT,
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "127.0.0.1",
    db_type: TypeOption = "sqlite",
) -> None:
    """Start the HTTP API on the first free port at or above --port.

    Examples:

        sqlite-eda serve --database ./shop.db

        sqlite-eda serve -d ./shop.db --port 8080
    """
    from sqlite_eda.app import create_app

    settings = _settings_with(
        database_path=str(database) if database else None,
        database_type=db_type,
        host=host,
        port=port,
    )
    configure_logging(settings)
    db = _open_database(settings)

    try:
        available_port = find_available_port(settings.port, settings.host)
    except RuntimeError as e:
        typer.echo(f"Error finding available port: {e}", err=True)
        db.close()
        raise typer.Exit(code=1)

    typer.echo(f"SQLite EDA running at http://{settings.host}:{available_port}")
    uvicorn.run(create_app(settings, db), host=settings.host, port=available_port, log_config=None)


def profile(
    table: Annotated[str, typer.Argument(help="Table to profile")],
    database: DatabaseOption = None,
    recommend: Annotated[bool, typer.Option("--recommend", help="Include chart recommendations")] = False,
    sample_size: Annotated[
        Optional[int], typer.Option("--sample-size", help="Rows sampled for type detection")
    ] = None,
) -> None:
    """Print the profile of a table as JSON.

    Examples:

        sqlite-eda profile orders --database ./shop.db

        sqlite-eda profile orders -d ./shop.db --recommend
    """
    settings = _settings_with(
        database_path=str(database) if database else None,
        sample_size=sample_size,
    )
    db = _open_database(settings)

    try:
        table_profile = generate_table_profile(db, require_table_name(table), settings.sample_size)
        output: Any = table_profile.model_dump(by_alias=True, exclude_none=True)
        if recommend:
            output = {
                "profile": output,
                "recommendations": [
                    rec.model_dump(by_alias=True, exclude_none=True)
                    for rec in recommend_visualizations(table_profile)
                ],
            }
    except EdaError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()

    _echo_json(output)


def stats(
    table: Annotated[str, typer.Argument(help="Table containing the column")],
    column: Annotated[str, typer.Argument(help="Column to describe")],
    database: DatabaseOption = None,
) -> None:
    """Print statistics for one column as JSON.

    Examples:

        sqlite-eda stats orders amount --database ./shop.db
    """
    settings = _settings_with(database_path=str(database) if database else None)
    db = _open_database(settings)

    try:
        result = generate_column_statistics(db, require_table_name(table), require_column_name(column))
    except EdaError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()

    _echo_json(result.model_dump(by_alias=True, exclude_none=True))
    if isinstance(result, StatisticsError):
        raise typer.Exit(code=1)


# Register commands
app.command()(serve)
app.command()(profile)
app.command()(stats)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
