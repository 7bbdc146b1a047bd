"""
Integration tests for the movie and user repositories.

These tests run against a real PostgreSQL instance and verify that:
1. Versions advance by exactly one per successful update
2. Stale versions are rejected without touching the stored row
3. Pagination metadata and filters match the stored data
4. Unique email violations are classified

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os
import threading

import pytest

from recordstore.config import Settings
from recordstore.database.filters import MOVIE_SORT_SAFELIST, USER_SORT_SAFELIST, Filters, Metadata, MovieFilter, UserFilter
from recordstore.domain.errors import DuplicateValue, EditConflict, RecordNotFound
from recordstore.domain.models import Movie, MovieUpdate, NewMovie, User
from recordstore.infrastructure.db_factory import create_async_pool
from recordstore.repositories import AsyncRepositories, Repositories

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and reachable Postgres",
)

SEEDED_ROWS = 45


def _up() -> Movie:
    return Movie.from_new(NewMovie(title="Up", year=2009, runtime=96, genres=["animation", "adventure"]))


def _movie_filters(**kwargs) -> Filters:
    return Filters(sort_safelist=MOVIE_SORT_SAFELIST, **kwargs)


def test_create_update_and_stale_update(repos: Repositories):
    movie = _up()
    repos.movies.create(movie)
    assert (movie.id, movie.version) == (1, 1)
    assert movie.created_at is not None

    stale = movie.model_copy(update={"version": 0})
    with pytest.raises(EditConflict):
        repos.movies.update(stale)

    assert repos.movies.update(movie) == 2
    assert repos.movies.read(movie.id).version == 2


def test_second_writer_with_same_version_conflicts(repos: Repositories):
    movie = _up()
    repos.movies.create(movie)
    first = repos.movies.read(movie.id)
    second = repos.movies.read(movie.id)

    first.apply(MovieUpdate(title="Up (2009)"))
    repos.movies.update(first)

    second.apply(MovieUpdate(runtime=100))
    with pytest.raises(EditConflict):
        repos.movies.update(second)

    stored = repos.movies.read(movie.id)
    assert (stored.title, stored.runtime, stored.version) == ("Up (2009)", 96, 2)


def test_concurrent_updates_have_exactly_one_winner(repos: Repositories):
    movie = _up()
    repos.movies.create(movie)
    outcomes = []
    barrier = threading.Barrier(2)

    def writer(runtime: int) -> None:
        copy = movie.model_copy(update={"runtime": runtime})
        barrier.wait()
        try:
            repos.movies.update(copy)
            outcomes.append("ok")
        except EditConflict:
            outcomes.append("conflict")

    threads = [threading.Thread(target=writer, args=(r,)) for r in (100, 110)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["conflict", "ok"]
    assert repos.movies.read(movie.id).version == 2


def test_create_then_read_round_trip(repos: Repositories):
    movie = _up()
    repos.movies.create(movie)

    fetched = repos.movies.read(movie.id)

    assert fetched.model_dump() == movie.model_dump()
    assert fetched.created_at == movie.created_at


def test_read_and_delete_missing(repos: Repositories):
    with pytest.raises(RecordNotFound):
        repos.movies.read(999)
    with pytest.raises(RecordNotFound):
        repos.movies.read(-1)
    with pytest.raises(RecordNotFound):
        repos.movies.delete(999)


def test_delete_then_read_is_not_found(repos: Repositories):
    movie = _up()
    repos.movies.create(movie)

    repos.movies.delete(movie.id)

    with pytest.raises(RecordNotFound):
        repos.movies.read(movie.id)
    with pytest.raises(RecordNotFound):
        repos.movies.delete(movie.id)


def test_first_page_metadata(repos: Repositories, seeded_movies: int):
    movies, metadata = repos.movies.list(MovieFilter(), _movie_filters(page=1, page_size=20))

    assert len(movies) == 20
    assert metadata == Metadata(current_page=1, page_size=20, first_page=1, last_page=3, total_records=SEEDED_ROWS)
    assert [m.id for m in movies] == list(range(1, 21))


def test_last_page_is_partial(repos: Repositories, seeded_movies: int):
    movies, metadata = repos.movies.list(MovieFilter(), _movie_filters(page=3, page_size=20))

    assert len(movies) == 5
    assert metadata.current_page == 3


def test_descending_sort_breaks_ties_by_id(repos: Repositories, seeded_movies: int):
    movies, _ = repos.movies.list(MovieFilter(), _movie_filters(sort="-year", page_size=100))

    keys = [(-m.year, m.id) for m in movies]
    assert keys == sorted(keys)


def test_empty_filter_matches_everything(repos: Repositories, seeded_movies: int):
    first, first_meta = repos.movies.list(MovieFilter(title="", genres=[]), _movie_filters(page_size=100))
    second, second_meta = repos.movies.list(MovieFilter(), _movie_filters(page_size=100))

    assert first_meta.total_records == SEEDED_ROWS
    assert [m.id for m in first] == [m.id for m in second]
    assert first_meta == second_meta


def test_filters_by_title_and_genre(repos: Repositories):
    for new in (
        NewMovie(title="The Black Hole", year=1979, runtime=98, genres=["sci-fi"]),
        NewMovie(title="Black Panther", year=2018, runtime=134, genres=["action", "sci-fi"]),
        NewMovie(title="Up", year=2009, runtime=96, genres=["animation"]),
    ):
        repos.movies.create(Movie.from_new(new))

    by_title, meta = repos.movies.list(MovieFilter(title="black"), _movie_filters())
    assert meta.total_records == 2
    assert {m.title for m in by_title} == {"The Black Hole", "Black Panther"}

    both, _ = repos.movies.list(MovieFilter(genres=["action", "sci-fi"]), _movie_filters())
    assert [m.title for m in both] == ["Black Panther"]


def test_no_matches_gives_zero_metadata(repos: Repositories, seeded_movies: int):
    movies, metadata = repos.movies.list(MovieFilter(title="zzzznotatitle"), _movie_filters())

    assert movies == []
    assert metadata == Metadata()


def test_duplicate_email_is_classified(repos: Repositories):
    repos.users.create(User(name="Alice", email="alice@example.com", password_hash=b"h1"))

    with pytest.raises(DuplicateValue) as excinfo:
        repos.users.create(User(name="Impostor", email="ALICE@example.com", password_hash=b"h2"))
    assert excinfo.value.field == "email"

    bob = User(name="Bob", email="bob@example.com", password_hash=b"h3")
    repos.users.create(bob)
    bob.email = "alice@example.com"
    with pytest.raises(DuplicateValue):
        repos.users.update(bob)


def test_user_lookup_and_list(repos: Repositories):
    alice = User(name="Alice", email="alice@example.com", password_hash=b"h1", activated=True)
    repos.users.create(alice)
    repos.users.create(User(name="Bob", email="bob@example.com", password_hash=b"h2"))

    assert repos.users.read_by_email("Alice@Example.com").id == alice.id
    with pytest.raises(RecordNotFound):
        repos.users.read_by_email("nobody@example.com")

    users, metadata = repos.users.list(
        UserFilter(activated=True), Filters(sort="-name", sort_safelist=USER_SORT_SAFELIST)
    )
    assert [u.name for u in users] == ["Alice"]
    assert metadata.total_records == 1


@pytest.mark.asyncio
async def test_async_repositories_round_trip(repos: Repositories, test_dsn: str):
    pool = await create_async_pool(Settings(db_dsn=test_dsn, db_max_open_conns=2))
    try:
        async_repos = AsyncRepositories.from_pool(pool, timeout=3.0)
        movie = _up()
        await async_repos.movies.create(movie)
        assert movie.version == 1

        assert await async_repos.movies.update(movie) == 2
        stale = movie.model_copy(update={"version": 1})
        with pytest.raises(EditConflict):
            await async_repos.movies.update(stale)

        fetched = await async_repos.movies.read(movie.id)
        assert fetched.version == 2

        movies, metadata = await async_repos.movies.list(MovieFilter(genres=["animation"]), _movie_filters())
        assert [m.id for m in movies] == [movie.id]
        assert metadata.total_records == 1

        await async_repos.movies.delete(movie.id)
        with pytest.raises(RecordNotFound):
            await async_repos.movies.read(movie.id)
    finally:
        await pool.close()
