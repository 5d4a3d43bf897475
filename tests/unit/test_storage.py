"""
Unit tests for state storage.

Tests:
- MemoryStorage read/write/delete isolation
- JsonFileStorage persistence across instances
- Lockfile handling (stale locks, timeouts)
"""

import asyncio
import json
import os

import pytest

from workflows.io.storage import (
    FileLock,
    JsonFileStorage,
    MemoryStorage,
    StorageError,
    create_storage,
    lock_path_for,
)


class TestMemoryStorage:
    @pytest.mark.asyncio
    async def test_read_missing_keys_returns_nothing(self):
        storage = MemoryStorage()

        assert await storage.read(["api/users/u1"]) == {}

    @pytest.mark.asyncio
    async def test_write_then_read(self):
        storage = MemoryStorage()

        await storage.write({"k": {"UserProfile": {"name": "Amy"}}})

        assert await storage.read(["k", "other"]) == {"k": {"UserProfile": {"name": "Amy"}}}

    @pytest.mark.asyncio
    async def test_records_are_copied(self):
        storage = MemoryStorage()
        record = {"UserProfile": {"name": "Amy"}}
        await storage.write({"k": record})

        record["UserProfile"]["name"] = "Rory"
        loaded = await storage.read(["k"])
        loaded["k"]["UserProfile"]["name"] = "Clara"

        assert (await storage.read(["k"]))["k"]["UserProfile"]["name"] == "Amy"

    @pytest.mark.asyncio
    async def test_delete(self):
        storage = MemoryStorage({"a": {"x": 1}, "b": {"x": 2}})

        await storage.delete(["a", "missing"])

        assert await storage.read(["a", "b"]) == {"b": {"x": 2}}


class TestJsonFileStorage:
    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "state.json"

        await JsonFileStorage(path).write({"api/conversations/c1": {"ConversationFlow": {"last_question_asked": "age"}}})
        loaded = await JsonFileStorage(path).read(["api/conversations/c1"])

        assert loaded == {"api/conversations/c1": {"ConversationFlow": {"last_question_asked": "age"}}}

    @pytest.mark.asyncio
    async def test_missing_file_reads_empty(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "nested" / "state.json")

        assert await storage.read(["anything"]) == {}

    def test_missing_directory_created_up_front(self, tmp_path):
        path = tmp_path / "data" / "bot" / "state.json"

        JsonFileStorage(path)

        assert path.parent.is_dir()
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_write_into_missing_directory(self, tmp_path):
        path = tmp_path / "data" / "state.json"

        await JsonFileStorage(path).write({"a": {"x": 1}})

        assert json.loads(path.read_text(encoding="utf-8")) == {"a": {"x": 1}}
        assert not lock_path_for(path).exists()

    @pytest.mark.asyncio
    async def test_write_merges_with_existing_records(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "state.json")

        await storage.write({"a": {"x": 1}})
        await storage.write({"b": {"x": 2}})

        data = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
        assert data == {"a": {"x": 1}, "b": {"x": 2}}

    @pytest.mark.asyncio
    async def test_delete_removes_record(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "state.json")
        await storage.write({"a": {"x": 1}, "b": {"x": 2}})

        await storage.delete(["a"])

        assert await storage.read(["a", "b"]) == {"b": {"x": 2}}

    @pytest.mark.asyncio
    async def test_lock_released_after_write(self, tmp_path):
        path = tmp_path / "state.json"

        await JsonFileStorage(path).write({"a": {}})

        assert not lock_path_for(path).exists()

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError):
            await JsonFileStorage(path).read(["a"])

    @pytest.mark.asyncio
    async def test_non_object_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(StorageError):
            await JsonFileStorage(path).read(["a"])

    @pytest.mark.asyncio
    async def test_contended_lock_does_not_block_event_loop(self, tmp_path):
        path = tmp_path / "state.json"
        lock_path_for(path).write_text(str(os.getpid()), encoding="utf-8")
        storage = JsonFileStorage(path, lock_timeout=0.5)
        ticks = 0

        async def ticker():
            nonlocal ticks
            while True:
                await asyncio.sleep(0.02)
                ticks += 1

        task = asyncio.create_task(ticker())
        try:
            with pytest.raises(TimeoutError):
                await storage.read(["k"])
        finally:
            task.cancel()

        # Roughly 25 ticks fit in the lock timeout when the loop stays free
        assert ticks >= 5


class TestFileLock:
    def test_lock_path_is_hidden_sibling(self, tmp_path):
        assert lock_path_for(tmp_path / "state.json") == tmp_path / ".state.json.lock"

    def test_stale_lock_from_dead_process_is_removed(self, tmp_path):
        lock = tmp_path / ".state.json.lock"
        # PIDs this large are never handed out on Linux/macOS
        lock.write_text("999999999", encoding="utf-8")

        with FileLock(lock, timeout=0.5):
            assert lock.read_text(encoding="utf-8") == str(os.getpid())

        assert not lock.exists()

    def test_live_lock_times_out(self, tmp_path):
        lock = tmp_path / ".state.json.lock"
        lock.write_text(str(os.getpid()), encoding="utf-8")

        with pytest.raises(TimeoutError):
            FileLock(lock, timeout=0.2, sleep=0.05).acquire()

        assert lock.exists()


def test_create_storage_picks_backend(tmp_path):
    assert isinstance(create_storage(None), MemoryStorage)

    storage = create_storage(tmp_path / "state.json")

    assert isinstance(storage, JsonFileStorage)
    assert storage.path == tmp_path / "state.json"
