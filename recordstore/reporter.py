from __future__ import annotations

from typing import Dict, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from recordstore.database.filters import Metadata
from recordstore.domain.models import Movie


def build_movies_table(movies: Sequence[Movie], metadata: Metadata) -> Table:
    """Render a page of movies with a pagination caption."""
    table = Table(
        title="Movies",
        box=box.SIMPLE_HEAVY,
        caption=_pagination_caption(metadata),
        show_lines=False,
    )
    table.add_column("ID", justify="right", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Year", justify="right")
    table.add_column("Runtime", justify="right")
    table.add_column("Genres")
    table.add_column("Version", justify="right", style="dim")

    for movie in movies:
        table.add_row(
            str(movie.id),
            movie.title,
            str(movie.year),
            f"{movie.runtime} mins",
            ", ".join(movie.genres or []),
            str(movie.version),
        )
    return table


def _pagination_caption(metadata: Metadata) -> str:
    if metadata.total_records == 0:
        return "No matching records."
    return (
        f"Page {metadata.current_page} of {metadata.last_page} "
        f"({metadata.page_size} per page, {metadata.total_records} total)"
    )


def build_errors_table(errors: Dict[str, str], title: str = "Invalid input") -> Table:
    table = Table(title=title, box=box.SIMPLE, title_style="bold red")
    table.add_column("Field", style="yellow")
    table.add_column("Problem")
    for field, message in sorted(errors.items()):
        table.add_row(field, message)
    return table


def print_movies(movies: Sequence[Movie], metadata: Metadata, console: Optional[Console] = None) -> None:
    (console or Console()).print(build_movies_table(movies, metadata))


def print_errors(errors: Dict[str, str], console: Optional[Console] = None) -> None:
    (console or Console(stderr=True)).print(build_errors_table(errors))


__all__ = ["build_movies_table", "build_errors_table", "print_movies", "print_errors"]
