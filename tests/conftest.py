from datetime import datetime, timedelta

import pytest

from critpath.models import Task

BASE = datetime(2026, 1, 5, 9, 0)


def day(n: float) -> datetime:
    return BASE + timedelta(days=n)


def make_task(tid: str, start: float, end: float, **kwargs) -> Task:
    return Task(id=tid, name=kwargs.pop("name", f"Task {tid}"), start_at=day(start), end_at=day(end), **kwargs)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CRITPATH_DB_FILE", raising=False)
    monkeypatch.delenv("CRITPATH_LOG_LEVEL", raising=False)
