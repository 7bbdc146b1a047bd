import json

import pytest
from typer.testing import CliRunner

from recordstore import main
from recordstore.database.filters import Metadata
from recordstore.domain.errors import RecordNotFound
from recordstore.domain.models import Movie

runner = CliRunner()

UP = Movie(id=1, title="Up", year=2009, runtime=96, genres=["animation", "adventure"], version=1)


class _StubRepository:
    def __init__(self, pool):
        self.pool = pool

    def list(self, movie_filter, filters):
        self.seen = (movie_filter, filters)
        return [UP], Metadata.calculate(1, filters.page, filters.page_size)

    def read(self, movie_id):
        if movie_id != UP.id:
            raise RecordNotFound()
        return UP


class _StubPoolManager:
    closed = 0

    def close_all(self):
        type(self).closed += 1


@pytest.fixture
def stubbed(monkeypatch):
    opened = []
    _StubPoolManager.closed = 0
    monkeypatch.setattr(main, "open_sync_pool", lambda: opened.append(True) or object())
    monkeypatch.setattr(main, "PoolManager", _StubPoolManager)
    monkeypatch.setattr(main, "MovieRepository", _StubRepository)
    monkeypatch.setattr(main, "_setup_logging", lambda: None)
    return opened


def test_movies_json_output(stubbed):
    result = runner.invoke(main.app, ["movies", "--genre", "animation", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["movies"][0]["title"] == "Up"
    assert payload["movies"][0]["runtime"] == "96 mins"
    assert payload["metadata"]["total_records"] == 1
    assert _StubPoolManager.closed == 1


def test_movies_invalid_filters_exit_before_connecting(stubbed):
    result = runner.invoke(main.app, ["movies", "--page", "0", "--sort", "rating"])

    assert result.exit_code == 2
    assert stubbed == []


def test_movie_not_found_exits_with_one(stubbed):
    result = runner.invoke(main.app, ["movie", "42"])

    assert result.exit_code == 1
    assert _StubPoolManager.closed == 1


def test_movie_prints_record(stubbed):
    result = runner.invoke(main.app, ["movie", "1"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["id"] == 1


def test_info_shows_configuration():
    result = runner.invoke(main.app, ["info"])

    assert result.exit_code == 0
    assert "DB=" in result.output
    assert "timeout=" in result.output
