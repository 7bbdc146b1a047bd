from __future__ import annotations

import json
import sys
from typing import List, Optional

import typer

from recordstore.config import get_settings
from recordstore.database.filters import MOVIE_SORT_SAFELIST, Filters, MovieFilter
from recordstore.domain.errors import RecordNotFound
from recordstore.domain.validator import Validator
from recordstore.infrastructure.db_factory import PoolManager, open_sync_pool
from recordstore.reporter import print_errors, print_movies
from recordstore.repositories.movies import MovieRepository
from recordstore.utils.logging import configure_logging

app = typer.Typer(help="recordstore data-access CLI.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool=({settings.db_min_conns},{settings.db_max_open_conns}) "
        f"idle={settings.db_max_idle_time_seconds:g}s "
        f"timeout={settings.db_query_timeout_seconds:g}s | env={settings.app_env}"
    )


@app.command()
def ping() -> None:
    """
    Open the connection pool and verify the database answers.
    """
    _setup_logging()
    try:
        open_sync_pool()
    finally:
        PoolManager().close_all()
    typer.echo("Database reachable.")


@app.command("movies")
def list_movies(
    title: str = typer.Option("", "--title", "-t", help="Full-text query on the title."),
    genres: Optional[List[str]] = typer.Option(
        None,
        "--genre",
        "-g",
        help="Required genre (repeatable).",
    ),
    sort: str = typer.Option("id", "--sort", "-s", help=f"One of: {', '.join(MOVIE_SORT_SAFELIST)}."),
    page: int = typer.Option(1, "--page", "-p"),
    page_size: int = typer.Option(20, "--page-size"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """
    List movies matching the given filters.
    """
    filters = Filters(page=page, page_size=page_size, sort=sort, sort_safelist=MOVIE_SORT_SAFELIST)
    v = Validator()
    filters.validate_filters(v)
    if not v.valid:
        print_errors(v.errors)
        raise typer.Exit(code=2)

    _setup_logging()
    pool = open_sync_pool()
    try:
        movies, metadata = MovieRepository(pool).list(MovieFilter(title=title, genres=genres or []), filters)
    finally:
        PoolManager().close_all()

    if as_json:
        payload = {
            "movies": [movie.model_dump(mode="json") for movie in movies],
            "metadata": metadata.to_json_dict(),
        }
        typer.echo(json.dumps(payload, indent=2))
        return
    print_movies(movies, metadata)


@app.command("movie")
def show_movie(movie_id: int = typer.Argument(..., help="Movie id.")) -> None:
    """
    Show a single movie as JSON.
    """
    _setup_logging()
    pool = open_sync_pool()
    try:
        movie = MovieRepository(pool).read(movie_id)
    except RecordNotFound:
        typer.echo(f"Movie {movie_id} not found.", err=True)
        raise typer.Exit(code=1)
    finally:
        PoolManager().close_all()
    typer.echo(json.dumps(movie.model_dump(mode="json"), indent=2))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
