import logging
from datetime import datetime

from typer.testing import CliRunner

from critpath.cli import app
from critpath.models import DependencyType
from critpath.persistence import Store

runner = CliRunner()


def _invoke(db, *args):
    return runner.invoke(app, ["--db", str(db), *args])


def _seed(db):
    assert _invoke(db, "add", "Design", "--start", "2026-01-05", "--days", "5").exit_code == 0
    assert _invoke(db, "add", "Build", "--start", "2026-01-05", "--end", "2026-01-08").exit_code == 0
    assert _invoke(db, "add", "Docs", "--start", "2026-01-05", "--days", "1").exit_code == 0


def test_add_and_link(tmp_path):
    db = tmp_path / "db.json"
    _seed(db)
    result = _invoke(db, "link", "T-1", "T-2", "--type", "SS", "--lag", "1")
    assert result.exit_code == 0, result.stdout

    tasks, deps = Store(db).load()
    assert [t.id for t in tasks] == ["T-1", "T-2", "T-3"]
    assert tasks[0].end_at == datetime(2026, 1, 10)
    assert deps[0].type is DependencyType.START_TO_START
    assert deps[0].lag == 1.0

    assert _invoke(db, "list").exit_code == 0


def test_add_requires_exactly_one_of_end_or_days(tmp_path):
    db = tmp_path / "db.json"
    result = _invoke(db, "add", "X", "--start", "2026-01-05")
    assert result.exit_code == 1
    result = _invoke(db, "add", "X", "--start", "2026-01-05", "--end", "2026-01-06", "--days", "1")
    assert result.exit_code == 1
    result = _invoke(db, "add", "X", "--start", "not-a-date", "--days", "1")
    assert result.exit_code == 1


def test_link_rejects_unknown_task_and_type(tmp_path):
    db = tmp_path / "db.json"
    _seed(db)
    assert _invoke(db, "link", "T-1", "T-99").exit_code == 1
    assert _invoke(db, "link", "T-1", "T-2", "--type", "XX").exit_code == 1
    assert Store(db).load()[1] == []


def test_schedule_apply_redates_tasks(tmp_path):
    db = tmp_path / "db.json"
    _seed(db)
    _invoke(db, "link", "T-1", "T-2")

    result = _invoke(db, "schedule")
    assert result.exit_code == 0, result.stdout
    # Preview only
    assert Store(db).load()[0][1].start_at == datetime(2026, 1, 5)

    result = _invoke(db, "schedule", "--apply")
    assert result.exit_code == 0, result.stdout
    tasks, _ = Store(db).load()
    assert tasks[1].start_at == datetime(2026, 1, 10)
    assert tasks[1].end_at == datetime(2026, 1, 13)


def test_schedule_csv_export(tmp_path):
    db = tmp_path / "db.json"
    out = tmp_path / "schedule.csv"
    _seed(db)
    _invoke(db, "link", "T-1", "T-2")

    result = _invoke(db, "schedule", "--csv", str(out))
    assert result.exit_code == 0, result.stdout
    lines = out.read_text().splitlines()
    assert lines[0] == "ID,Task Name,Start,End,Moved (d)"
    assert lines[2].startswith("T-2,Build,2026-01-10T00:00:00")


def test_critical_path_command(tmp_path):
    db = tmp_path / "db.json"
    _seed(db)
    _invoke(db, "link", "T-1", "T-2")

    result = _invoke(db, "critical-path", "--all")
    assert result.exit_code == 0, result.stdout
    assert "Project end: 2026-01-13 00:00" in result.stdout


def test_validate_and_strict_mode_on_cycle(tmp_path):
    db = tmp_path / "db.json"
    _seed(db)
    assert _invoke(db, "validate").exit_code == 0

    _invoke(db, "link", "T-1", "T-2")
    result = _invoke(db, "link", "T-2", "T-1")
    assert result.exit_code == 0
    assert "cycle" in result.stdout

    result = _invoke(db, "validate")
    assert result.exit_code == 1
    assert "T-1 -> T-2 -> T-1" in result.stdout

    assert _invoke(db, "critical-path", "--strict").exit_code == 1
    assert _invoke(db, "schedule", "--strict", "--apply").exit_code == 1
    # Without --strict cyclic input is scheduled best-effort
    assert _invoke(db, "critical-path").exit_code == 0


def test_unlink_and_delete(tmp_path):
    db = tmp_path / "db.json"
    _seed(db)
    _invoke(db, "link", "T-1", "T-2")
    _invoke(db, "link", "T-2", "T-3")

    assert _invoke(db, "unlink", "T-1", "T-3").exit_code == 1
    assert _invoke(db, "unlink", "T-1", "T-2").exit_code == 0
    assert len(Store(db).load()[1]) == 1

    assert _invoke(db, "delete", "T-3").exit_code == 0
    tasks, deps = Store(db).load()
    assert [t.id for t in tasks] == ["T-1", "T-2"]
    assert deps == []
    assert _invoke(db, "delete", "T-3").exit_code == 1


def test_db_path_from_environment(tmp_path, monkeypatch):
    db = tmp_path / "env.json"
    monkeypatch.setenv("CRITPATH_DB_FILE", str(db))
    result = runner.invoke(app, ["add", "Solo", "--start", "2026-01-05", "--days", "2"])
    assert result.exit_code == 0, result.stdout
    assert [t.name for t in Store(db).load()[0]] == ["Solo"]


def test_critical_path_complete_backward(tmp_path):
    db = tmp_path / "db.json"
    _seed(db)
    _invoke(db, "add", "Long", "--start", "2026-01-05", "--days", "10")
    _invoke(db, "link", "T-1", "T-2", "--type", "FF")

    result = _invoke(db, "critical-path")
    assert result.exit_code == 0, result.stdout
    # Design has a finish-to-finish dependent, so by default it is anchored at the project end
    assert "3 of 4 task(s) critical" in result.stdout

    result = _invoke(db, "critical-path", "--complete-backward")
    assert result.exit_code == 0, result.stdout
    assert "4 of 4 task(s) critical" in result.stdout


def test_verbose_enables_debug_logging(tmp_path):
    db = tmp_path / "db.json"
    _seed(db)
    result = _invoke(db, "--verbose", "critical-path")
    assert result.exit_code == 0, result.stdout
    assert logging.getLogger().level == logging.DEBUG


def test_log_level_from_environment(tmp_path, monkeypatch):
    db = tmp_path / "db.json"
    monkeypatch.setenv("CRITPATH_LOG_LEVEL", "info")
    assert _invoke(db, "list").exit_code == 0
    assert logging.getLogger().level == logging.INFO


def test_invalid_log_level_is_reported(tmp_path, monkeypatch):
    db = tmp_path / "db.json"
    monkeypatch.setenv("CRITPATH_LOG_LEVEL", "chatty")
    result = _invoke(db, "list")
    assert result.exit_code == 1
    assert "invalid log level" in result.stdout
