"""
Movie seeding script for recordstore.

Implements deterministic pseudo-random movie generation, CSV emission, and
Postgres COPY loading. Used by the integration tests and for local demos.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from datetime import UTC, datetime
from pathlib import Path

import psycopg
import typer

from recordstore.infrastructure.db_factory import build_dsn

app = typer.Typer(help="Generate synthetic movies and load them into Postgres (CSV + COPY).")

GENRES = [
    "action",
    "adventure",
    "animation",
    "comedy",
    "crime",
    "drama",
    "horror",
    "romance",
    "sci-fi",
    "western",
]
TITLE_WORDS = [
    "Midnight",
    "River",
    "Empire",
    "Silent",
    "Garden",
    "Storm",
    "Echo",
    "Harbor",
    "Crimson",
    "Orbit",
    "Winter",
    "Lantern",
]

CSV_HEADER = ["title", "year", "runtime", "genres"]


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _pg_array(values: list[str]) -> str:
    """Render a text[] literal for COPY; generated genre names never need quoting."""
    return "{" + ",".join(values) + "}"


def _generate_movies_csv(csv_path: Path, rows: int, seed: int) -> None:
    rng = random.Random(seed)
    current_year = datetime.now(UTC).year

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for i in range(rows):
            title = " ".join(rng.sample(TITLE_WORDS, k=rng.randint(1, 3))) + f" {i + 1}"
            genres = rng.sample(GENRES, k=rng.randint(1, 3))
            writer.writerow(
                [
                    title,
                    rng.randint(1920, current_year),
                    rng.randint(70, 200),
                    _pg_array(genres),
                ]
            )


def _copy_into_db(dsn: str, csv_path: Path) -> int:
    """COPY the CSV into ``public.movies`` and return the number of rows sent."""
    sent = 0
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            with cur.copy(
                """
                COPY public.movies (title, year, runtime, genres)
                FROM STDIN WITH (FORMAT csv, HEADER TRUE)
                """
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
                        sent += 1
        conn.commit()
    # The header line is not a row.
    return max(sent - 1, 0)


@app.command()
def main(
    rows: int = typer.Option(
        45,
        "--rows",
        "-r",
        help="Number of movies to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate synthetic movies and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="recordstore_csv_"))
        csv_path = tmpdir / "movies.csv"

    typer.echo(f"Generating {rows:,} movies -> {csv_path} (seed={seed})")
    _generate_movies_csv(csv_path, rows=rows, seed=seed)

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    loaded = _copy_into_db(_build_dsn(dsn), csv_path)
    duration = time.perf_counter() - start
    typer.echo(f"Loaded {loaded:,} movies in {duration:.2f}s.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
