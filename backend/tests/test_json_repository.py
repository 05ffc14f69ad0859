# tests/test_json_repository.py

from __future__ import annotations

from tasktimer.adapters.json_repository import JsonFileRepository
from tasktimer.client import build_local_engine
from tasktimer.engine.entities import TaskStatus

from .fakes import FakeTimeSource, RecordingAlarmSink


def test_missing_and_malformed_files_load_empty(tmp_path) -> None:
    repo = JsonFileRepository(tmp_path)
    assert repo.load_tasks() == []
    assert repo.load_focus_history() == {}

    repo.tasks_path.write_text("{not json", encoding="utf-8")
    repo.focus_path.write_text("[1, 2]", encoding="utf-8")

    assert repo.load_tasks() == []
    assert repo.load_focus_history() == {}


def test_save_and_clear(tmp_path) -> None:
    repo = JsonFileRepository(tmp_path)

    repo.save_tasks([{"id": "a", "title": "A"}])
    repo.save_focus_history({"2024-01-01": 42})

    assert repo.load_tasks() == [{"id": "a", "title": "A"}]
    assert repo.load_focus_history() == {"2024-01-01": 42}
    assert not list(tmp_path.glob("*.tmp"))

    repo.clear()
    assert repo.load_tasks() == []


def test_local_engine_survives_restart(engine_settings) -> None:
    clock = FakeTimeSource()
    engine = build_local_engine(engine_settings, RecordingAlarmSink(), clock)
    task = engine.create("Persisted", 1, "study", [{"title": "Step"}])
    engine.start(task.id)
    clock.advance(15_000)
    engine.tick()
    engine.flush()

    restarted = build_local_engine(engine_settings, RecordingAlarmSink(), clock)

    loaded = restarted.get(task.id)
    assert loaded.title == "Persisted"
    assert loaded.status is TaskStatus.RUNNING
    assert loaded.remaining_ms == 45_000
    assert [st.title for st in loaded.subtasks] == ["Step"]
    assert restarted.focused_today == 15
