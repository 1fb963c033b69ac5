"""Integration tests for CLI commands."""

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner, Result

from rateit.cli import cli, parse_key
from rateit.db import Database
from rateit.models import ContentKey, ContentType, Profile


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Database]:
    """Create a temporary database and patch the CLI to use it."""
    db_path = tmp_path / "test.db"

    # Patch the DEFAULT_DB_PATH constant
    import rateit.db as db_module

    monkeypatch.setattr(db_module, "DEFAULT_DB_PATH", db_path)
    for var in ("RATEIT_DB_PATH", "RATEIT_USER", "RATEIT_DEV_BYPASS_AUTH", "RATEIT_ENV"):
        monkeypatch.delenv(var, raising=False)

    db = Database(db_path=db_path)
    db.upsert_profile(Profile(id="alice", username="alice", display_name="Alice"))
    db.upsert_profile(Profile(id="bob", username="bob", display_name="Bob"))
    yield db
    db.close()


def run_as(runner: CliRunner, user: str, *args: str) -> Result:
    return runner.invoke(cli, ["--user", user, *args])


class TestParseKey:
    def test_valid(self) -> None:
        assert parse_key("movie:603") == ContentKey(ContentType.MOVIE, "603")

    def test_invalid(self, runner: CliRunner, cli_db: Database) -> None:
        result = run_as(runner, "alice", "rate", "film:1", "5", "--title", "X")
        assert result.exit_code == 2
        assert "unknown content type" in result.output

        result = run_as(runner, "alice", "rate", "movie", "5", "--title", "X")
        assert result.exit_code == 2


class TestProfileCommands:
    def test_create_profile(self, runner: CliRunner, cli_db: Database) -> None:
        result = runner.invoke(cli, ["profile", "create", "Dana", "--display-name", "Dana S"])

        assert result.exit_code == 0
        assert "Created profile @dana" in result.output
        assert cli_db.get_profile_by_username("dana") is not None

    def test_duplicate_username(self, runner: CliRunner, cli_db: Database) -> None:
        result = runner.invoke(cli, ["profile", "create", "alice"])

        assert result.exit_code == 1
        assert "[CONFLICT]" in result.output

    def test_show_profile_json(self, runner: CliRunner, cli_db: Database) -> None:
        run_as(runner, "alice", "rate", "book:1", "8", "--title", "Dune")

        result = run_as(runner, "alice", "profile", "show", "--format", "json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["profile"]["username"] == "alice"
        assert data["stats"]["total_ratings"] == 1

    def test_unknown_user(self, runner: CliRunner, cli_db: Database) -> None:
        result = run_as(runner, "ghost", "history")

        assert result.exit_code == 1
        assert "[NOT_FOUND]" in result.output


class TestRateCommand:
    def test_rate_and_rerate(self, runner: CliRunner, cli_db: Database) -> None:
        result = run_as(runner, "alice", "rate", "movie:603", "8.3", "--title", "The Matrix", "--review", "Whoa")
        assert result.exit_code == 0
        assert "Rated The Matrix: 8.5/10" in result.output

        result = run_as(runner, "alice", "rate", "movie:603", "9")
        assert result.exit_code == 0
        assert "Updated The Matrix: 9.0/10" in result.output

        ratings = cli_db.get_user_ratings("alice")
        assert len(ratings) == 1
        assert ratings[0].score == 9.0
        assert ratings[0].review_text == "Whoa"

    def test_rate_with_status(self, runner: CliRunner, cli_db: Database) -> None:
        result = run_as(runner, "alice", "rate", "game:1", "7", "--title", "Zelda", "--status", "done")

        assert result.exit_code == 0
        assert cli_db.get_status("alice", ContentType.GAME, "1").status.value == "done"

    def test_rate_requires_user(self, runner: CliRunner, cli_db: Database) -> None:
        result = runner.invoke(cli, ["rate", "movie:1", "5", "--title", "X"])

        assert result.exit_code == 1
        assert "[NOT_AUTHENTICATED]" in result.output

    def test_private_note_hidden_from_others(self, runner: CliRunner, cli_db: Database) -> None:
        run_as(runner, "alice", "rate", "movie:1", "6", "--title", "Alien", "--note", "watch the cut")

        mine = run_as(runner, "alice", "rating", "show", "movie:1")
        assert "Note: watch the cut" in mine.output

        theirs = run_as(runner, "bob", "rating", "show", "movie:1", "--user", "alice")
        assert theirs.exit_code == 0
        assert "watch the cut" not in theirs.output
        assert "Community: 6.0/10 from 1 rating(s)" in theirs.output

    def test_history_and_unrate(self, runner: CliRunner, cli_db: Database) -> None:
        run_as(runner, "alice", "rate", "book:1", "8", "--title", "Dune")
        rating_id = cli_db.get_user_ratings("alice")[0].id

        result = run_as(runner, "alice", "history")
        assert "Dune (book) 8.0/10" in result.output
        assert rating_id in result.output

        result = run_as(runner, "alice", "unrate", rating_id)
        assert result.exit_code == 0
        assert run_as(runner, "alice", "history").output.strip() == "No ratings."

    def test_stats_json(self, runner: CliRunner, cli_db: Database) -> None:
        for i, score in enumerate(["8", "8", "3.5"]):
            run_as(runner, "alice", "rate", f"movie:{i}", score, "--title", f"M{i}")

        result = run_as(runner, "alice", "stats", "--format", "json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["total_ratings"] == 3
        buckets = {b["score"]: b["total_count"] for b in data["distribution"]["buckets"]}
        assert buckets[8.0] == 2
        assert buckets[3.5] == 1


class TestChallengeCommands:
    def test_add_and_list(self, runner: CliRunner, cli_db: Database) -> None:
        result = run_as(runner, "alice", "challenge", "add", "movie", "2")
        assert result.exit_code == 0

        run_as(runner, "alice", "rate", "movie:1", "7", "--title", "One")
        run_as(runner, "alice", "rate", "book:1", "7", "--title", "Book")

        result = run_as(runner, "alice", "challenge", "list", "--format", "json")
        data = json.loads(result.output)
        assert data[0]["progress"] == 1
        assert data[0]["percentage"] == 50

    def test_duplicate(self, runner: CliRunner, cli_db: Database) -> None:
        run_as(runner, "alice", "challenge", "add", "all", "10", "--year", "2024")
        result = run_as(runner, "alice", "challenge", "add", "all", "20", "--year", "2024")

        assert result.exit_code == 1
        assert "[CONFLICT]" in result.output

    def test_empty_list_shows_available(self, runner: CliRunner, cli_db: Database) -> None:
        result = run_as(runner, "alice", "challenge", "list", "--year", "2024")

        assert "No challenges for 2024" in result.output
        assert "all" in result.output


class TestPinCommands:
    def test_sixth_pin_fails(self, runner: CliRunner, cli_db: Database) -> None:
        for i in range(5):
            result = run_as(runner, "alice", "pin", "add", f"movie:{i}", "--title", f"Movie {i}")
            assert result.exit_code == 0

        result = run_as(runner, "alice", "pin", "add", "movie:9", "--title", "Movie 9")

        assert result.exit_code == 1
        assert "[MAX_PINNED]" in result.output
        assert len(cli_db.get_pins("alice")) == 5

    def test_list(self, runner: CliRunner, cli_db: Database) -> None:
        run_as(runner, "alice", "pin", "add", "book:1", "--title", "Dune")

        result = run_as(runner, "bob", "pin", "list", "--user", "alice")

        assert "1. Dune (book)" in result.output


class TestSocialCommands:
    def test_follow_and_feed(self, runner: CliRunner, cli_db: Database) -> None:
        run_as(runner, "bob", "rate", "movie:1", "9", "--title", "Alien")

        assert "Your feed is empty" in run_as(runner, "alice", "feed").output
        assert "Following bob" in run_as(runner, "alice", "follow", "bob").output
        assert "Already following bob" in run_as(runner, "alice", "follow", "bob").output

        result = run_as(runner, "alice", "feed")
        assert "@bob Alien (movie) 9.0/10" in result.output

    def test_follow_self(self, runner: CliRunner, cli_db: Database) -> None:
        result = run_as(runner, "alice", "follow", "alice")

        assert result.exit_code == 1
        assert "[VALIDATION]" in result.output

    def test_notifications(self, runner: CliRunner, cli_db: Database) -> None:
        run_as(runner, "bob", "follow", "alice")

        result = run_as(runner, "alice", "notifications", "--mark-read")
        assert "1 unread" in result.output
        assert "follow from @bob" in result.output
        assert "0 unread" in run_as(runner, "alice", "notifications").output


class TestAnythingCommands:
    def test_add_and_rate(self, runner: CliRunner, cli_db: Database) -> None:
        result = run_as(runner, "alice", "anything", "add", "Office chairs")
        assert result.exit_code == 0
        item_id = cli_db.get_all_anything_items()[0].id

        result = run_as(runner, "alice", "rate", f"anything:{item_id}", "6.5")
        assert result.exit_code == 0
        assert "Rated Office chairs: 6.5/10" in result.output

    def test_duplicate_title(self, runner: CliRunner, cli_db: Database) -> None:
        run_as(runner, "alice", "anything", "add", "Office chairs")
        result = run_as(runner, "bob", "anything", "add", "Office chairs")

        assert result.exit_code == 1
        assert "[DUPLICATE_TITLE]" in result.output


class TestSearchCommand:
    def test_tracks_only_for_music(self, runner: CliRunner, cli_db: Database) -> None:
        result = run_as(runner, "alice", "search", "movie", "alien", "--tracks")

        assert result.exit_code == 2
        assert "only music can be searched by track" in result.output
