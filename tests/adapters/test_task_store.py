"""
Tests for the JSON and in-memory task stores.
"""

import json
import threading

import pytest

from taskmaster.adapters.task_store import InMemoryTaskStore, JsonTaskStore
from taskmaster.core.domain.entities import Task, TasksData
from taskmaster.core.exceptions import TaskStoreError


# =============================================================================
# JsonTaskStore
# =============================================================================


class TestJsonTaskStore:
    """Tests for the file-backed store."""

    def test_read(self, tasks_file):
        data = JsonTaskStore().read(str(tasks_file))
        assert [t.title for t in data.tasks] == ["Login page", "Password reset"]
        assert data.tasks[0].subtasks[1].compound_id == "1.2"

    def test_write_format(self, tmp_path, tasks_data):
        path = tmp_path / "out" / "tasks.json"

        JsonTaskStore().write(str(path), tasks_data)

        content = path.read_text()
        assert content.endswith("}\n")
        assert content.startswith('{\n  "tasks": [')
        assert json.loads(content) == tasks_data.to_dict()

    def test_no_temp_files_left(self, tmp_path, tasks_data):
        path = tmp_path / "tasks.json"
        JsonTaskStore().write(str(path), tasks_data)
        assert [p.name for p in tmp_path.iterdir()] == ["tasks.json"]

    def test_unknown_keys_preserved(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"tasks": [{"id": 1, "title": "T", "testStrategy": "x"}], "meta": {"v": 1}}))
        store = JsonTaskStore()

        with store.transaction(str(path)) as data:
            data.tasks[0].title = "Changed"

        raw = json.loads(path.read_text())
        assert raw["meta"] == {"v": 1}
        assert raw["tasks"][0]["testStrategy"] == "x"
        assert raw["tasks"][0]["title"] == "Changed"

    def test_missing_file(self, tmp_path):
        with pytest.raises(TaskStoreError, match="Tasks file not found") as exc_info:
            JsonTaskStore().read(str(tmp_path / "nope.json"))
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text("{not json")
        with pytest.raises(TaskStoreError, match="Invalid JSON"):
            JsonTaskStore().read(str(path))

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text("[]")
        with pytest.raises(TaskStoreError, match="must contain a JSON object"):
            JsonTaskStore().read(str(path))

    def test_malformed_task(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"tasks": [{"title": "no id"}]}))
        with pytest.raises(TaskStoreError, match="Malformed task"):
            JsonTaskStore().read(str(path))

    def test_failed_transaction_writes_nothing(self, tasks_file):
        before = tasks_file.read_text()
        store = JsonTaskStore()

        with pytest.raises(RuntimeError):
            with store.transaction(str(tasks_file)) as data:
                data.tasks.clear()
                raise RuntimeError("abort")

        assert tasks_file.read_text() == before

    def test_concurrent_transactions_lose_nothing(self, tasks_file):
        store = JsonTaskStore()
        path = str(tasks_file)

        def add_marker(n: int) -> None:
            with store.transaction(path) as data:
                data.tasks[0].metadata[f"marker{n}"] = n

        threads = [threading.Thread(target=add_marker, args=(n,)) for n in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        metadata = store.read(path).tasks[0].metadata
        assert all(metadata[f"marker{n}"] == n for n in range(20))

    def test_exists(self, tasks_file, tmp_path):
        store = JsonTaskStore()
        assert store.exists(str(tasks_file))
        assert not store.exists(str(tmp_path / "missing.json"))


# =============================================================================
# InMemoryTaskStore
# =============================================================================


class TestInMemoryTaskStore:
    """Tests for the dictionary-backed store."""

    def test_read_returns_copies(self, store):
        first = store.read("tasks/tasks.json")
        first.tasks[0].title = "Mutated"
        assert store.read("tasks/tasks.json").tasks[0].title == "Login page"

    def test_constructor_copies_documents(self, tasks_data):
        store = InMemoryTaskStore({"a.json": tasks_data})
        tasks_data.tasks.clear()
        assert len(store.read("a.json").tasks) == 2

    def test_missing_path(self):
        with pytest.raises(TaskStoreError):
            InMemoryTaskStore().read("missing.json")

    def test_write_count(self, store):
        store.write("new.json", TasksData(tasks=[Task(id=1)]))
        with store.transaction("new.json") as data:
            data.tasks.append(Task(id=2))

        assert store.write_count["new.json"] == 2
        assert store.write_count["tasks/tasks.json"] == 0
        assert len(store.read("new.json").tasks) == 2

    def test_failed_transaction_writes_nothing(self, store):
        with pytest.raises(ValueError):
            with store.transaction("tasks/tasks.json") as data:
                data.tasks.clear()
                raise ValueError("abort")

        assert store.write_count["tasks/tasks.json"] == 0
        assert len(store.read("tasks/tasks.json").tasks) == 2
