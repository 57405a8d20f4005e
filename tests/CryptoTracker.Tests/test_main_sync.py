"""Tests for the one-shot sync CLI."""
import main_sync


def test_check_reports_empty_tables(monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")

    code = main_sync.main(["--create-tables", "--check"])

    assert code == 0
    out = capsys.readouterr().out
    assert "database=ok" in out
    assert "current_coins=0 historical_coins=0" in out


def test_check_fails_when_tables_are_missing(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")

    assert main_sync.main(["--check"]) == 1


def test_missing_database_url_exits_with_config_error(monkeypatch):
    for name in ("DATABASE_URL", "DB_HOST", "DB_NAME", "DB_USER", "DB_PASSWORD"):
        monkeypatch.delenv(name, raising=False)

    assert main_sync.main(["--check"]) == 2
