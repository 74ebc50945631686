"""Tests for the command-line interface and component wiring."""

import json

import pytest

from config import Config
from ephemera.bootstrap import build_components
from ephemera.cli import build_parser, main


@pytest.fixture
def cli_args(tmp_path, monkeypatch):
    """Global flags pointing the CLI at a temporary SQLite database."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return [
        "--db-path", str(tmp_path / "cli.db"),
        "--upload-dir", str(tmp_path / "uploads"),
    ]


class TestCLI:
    """Test CLI commands."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "ephemera-cli" in capsys.readouterr().out

    def test_parser(self):
        args = build_parser().parse_args(["shorten", "https://example.com", "--alias", "mylink", "--expires-in", "3"])

        assert args.command == "shorten"
        assert args.url == "https://example.com"
        assert args.alias == "mylink"
        assert args.expires_in == 3

    def test_shorten_and_stats(self, cli_args, capsys):
        assert main(cli_args + ["shorten", "https://example.com", "--alias", "clilink"]) == 0
        data = json.loads(capsys.readouterr().out)

        assert data["success"] is True
        assert data["short_code"] == "clilink"
        assert data["short_url"].endswith("/s/clilink")
        assert data["expires_at"] is None

        assert main(cli_args + ["stats", "clilink"]) == 0
        data = json.loads(capsys.readouterr().out)

        assert data["original_url"] == "https://example.com"
        assert data["click_count"] == 0
        assert data["recent_clicks"] == []

    def test_invalid_url_reports_error(self, cli_args, capsys):
        assert main(cli_args + ["shorten", "not-a-url"]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        error = json.loads(captured.err[captured.err.index("{"):])
        assert error["success"] is False
        assert error["code"] == "BAD_REQUEST"

    def test_stats_unknown_code(self, cli_args, capsys):
        assert main(cli_args + ["stats", "nope00"]) == 1

    def test_list_sweep_health(self, cli_args, capsys):
        assert main(cli_args + ["list"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {"success": True, "total": 0, "contents": []}

        assert main(cli_args + ["sweep"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["records_deleted"] == 0

        assert main(cli_args + ["health"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {"success": True, "database": "healthy"}


@pytest.mark.asyncio
class TestBuildComponents:
    """Test wiring from configuration."""

    async def test_build_and_close(self, tmp_path, logger, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        config = Config(db_path=str(tmp_path / "app.db"), upload_dir=str(tmp_path / "files"))

        components = await build_components(config, logger=logger)
        try:
            assert components.counters.running
            assert components.sweeper.running
            assert await components.db.health_check()
            assert (tmp_path / "files").is_dir()

            note = await components.content_service.create_note("wired")
            assert (await components.content_service.get_content(note.id)).body == "wired"
        finally:
            await components.close()

        assert not components.counters.running
        assert not components.sweeper.running

    async def test_without_background(self, tmp_path, logger, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        config = Config(db_path=str(tmp_path / "app.db"), upload_dir=str(tmp_path / "files"))

        components = await build_components(config, logger=logger, start_background=False)
        try:
            assert not components.counters.running
            assert not components.sweeper.running
        finally:
            await components.close()


class TestConfig:
    """Test configuration."""

    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "ADMIN_SECRET", "MAX_FILE_SIZE_MB", "ALLOWED_ORIGINS"):
            monkeypatch.delenv(name, raising=False)
        config = Config()

        assert config.database_url is None
        assert config.max_file_size == 50 * 1024 * 1024
        assert config.expiration_days == 7
        assert config.cors_origins == ["*"]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MAX_FILE_SIZE_MB", "2")
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example")

        config = Config()

        assert config.max_file_size == 2 * 1024 * 1024
        assert config.cors_origins == ["https://a.example", "https://b.example"]

    def test_safe_dump_masks_secrets(self):
        config = Config(admin_secret="hunter2", database_url="postgresql://u:p@db/x")
        data = config.safe_dump()

        assert data["admin_secret"] == "***"
        assert data["database_url"] == "***"
