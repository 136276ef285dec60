# tests/test_task_store.py

from __future__ import annotations

import json
import uuid
from pathlib import Path

import pytest

from app.tasks import (
    DeserializationError,
    DirectoryReadError,
    FileOpenError,
    FileRemoveError,
    FileWriteError,
    Task,
    TaskFileStore,
)
from app.tasks.store import deserialize_task, generate_task_id, serialize_task, task_filename


@pytest.fixture
def milk() -> Task:
    return Task(name="Buy milk", priority="low", details="2%")


# ── ID 生成与序列化 ──

def test_generate_task_id_is_canonical_uuid4():
    task_id = generate_task_id()
    parsed = uuid.UUID(task_id)
    assert parsed.version == 4
    assert str(parsed) == task_id
    assert task_id != generate_task_id()


def test_task_filename_appends_json_suffix():
    assert task_filename("abc") == "abc.json"


def test_serialize_task_is_flat_field_tagged_json(milk: Task):
    data = serialize_task(milk)
    assert json.loads(data) == {"name": "Buy milk", "priority": "low", "details": "2%"}
    assert deserialize_task(data) == milk


def test_serialize_keeps_non_ascii_text():
    task = Task(name="买牛奶", priority="高", details="全脂")
    assert deserialize_task(serialize_task(task)) == task


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "",
        '{"name": "a", "priority": "b"}',
        '["a", "b", "c"]',
        '{"name": 1, "priority": "b", "details": "c"}',
    ],
)
def test_deserialize_rejects_invalid_content(raw: str):
    with pytest.raises(DeserializationError):
        deserialize_task(raw)


# ── 目录级操作 ──

@pytest.mark.asyncio
async def test_count_and_list_include_every_entry(store: TaskFileStore, tasks_dir: Path):
    (tasks_dir / "notes.txt").write_text("not a task")
    first = await store.create(Task(name="a", priority="b", details="c"))
    second = await store.create(Task(name="d", priority="e", details="f"))

    assert await store.count() == 3
    assert set(await store.list_filenames()) == {first, second, "notes.txt"}


@pytest.mark.asyncio
async def test_missing_directory_raises_directory_read_error(tmp_path: Path):
    store = TaskFileStore(tmp_path / "missing")

    with pytest.raises(DirectoryReadError):
        await store.count()
    with pytest.raises(DirectoryReadError):
        await store.list_filenames()
    assert not (tmp_path / "missing").exists()


# ── 单文件操作 ──

@pytest.mark.asyncio
async def test_create_writes_one_file_named_after_uuid(store: TaskFileStore, tasks_dir: Path, milk: Task):
    filename = await store.create(milk)

    assert filename.endswith(".json")
    uuid.UUID(filename[: -len(".json")])
    assert json.loads((tasks_dir / filename).read_text()) == milk.model_dump()


@pytest.mark.asyncio
async def test_create_into_missing_directory_raises_file_write_error(tmp_path: Path, milk: Task):
    store = TaskFileStore(tmp_path / "missing")
    with pytest.raises(FileWriteError):
        await store.create(milk)


@pytest.mark.asyncio
async def test_read_raw_returns_stored_text_untouched(store: TaskFileStore, tasks_dir: Path):
    (tasks_dir / "hand.json").write_text('{"name": "x",  "priority": "y", "details": "z"}')
    assert await store.read_raw("hand.json") == '{"name": "x",  "priority": "y", "details": "z"}'


@pytest.mark.asyncio
async def test_read_raw_keeps_crlf_line_endings(store: TaskFileStore, tasks_dir: Path):
    """按字节读取后解码，不做换行符转换"""
    (tasks_dir / "crlf.json").write_bytes(b'{"name":"a",\r\n"priority":"b","details":"c"}')
    assert await store.read_raw("crlf.json") == '{"name":"a",\r\n"priority":"b","details":"c"}'


@pytest.mark.asyncio
async def test_read_raw_missing_file_raises_file_open_error(store: TaskFileStore):
    with pytest.raises(FileOpenError):
        await store.read_raw("nope.json")


@pytest.mark.asyncio
async def test_load_corrupted_file_raises_deserialization_error(store: TaskFileStore, tasks_dir: Path):
    (tasks_dir / "bad.json").write_text("{broken")
    with pytest.raises(DeserializationError):
        await store.load("bad.json")


@pytest.mark.asyncio
async def test_save_replaces_content_and_leaves_no_temp_files(store: TaskFileStore, tasks_dir: Path, milk: Task):
    filename = await store.create(milk)
    updated = milk.model_copy(update={"priority": "high"})

    await store.save(filename, updated)

    assert await store.load(filename) == updated
    assert [p.name for p in tasks_dir.iterdir()] == [filename]


@pytest.mark.asyncio
async def test_save_failure_keeps_original_file(
    store: TaskFileStore, tasks_dir: Path, milk: Task, monkeypatch: pytest.MonkeyPatch
):
    filename = await store.create(milk)

    def _boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("app.tasks.store.os.replace", _boom)

    with pytest.raises(FileWriteError):
        await store.save(filename, milk.model_copy(update={"name": "Buy bread"}))

    assert json.loads((tasks_dir / filename).read_text()) == milk.model_dump()
    assert [p.name for p in tasks_dir.iterdir()] == [filename]


@pytest.mark.asyncio
async def test_remove_deletes_file_and_fails_second_time(store: TaskFileStore, tasks_dir: Path, milk: Task):
    filename = await store.create(milk)

    await store.remove(filename)
    assert not (tasks_dir / filename).exists()

    with pytest.raises(FileRemoveError):
        await store.remove(filename)


@pytest.mark.asyncio
@pytest.mark.parametrize("filename", ["", ".", "..", "../escape.json", "a/b.json", "a\\b.json"])
async def test_filenames_outside_storage_directory_are_rejected(
    store: TaskFileStore, tmp_path: Path, filename: str
):
    (tmp_path / "escape.json").write_text("{}")

    with pytest.raises(FileOpenError):
        await store.read_raw(filename)
    with pytest.raises(FileRemoveError):
        await store.remove(filename)
    assert (tmp_path / "escape.json").exists()


def test_lock_is_shared_per_filename(store: TaskFileStore):
    lock = store.lock("a.json")
    assert store.lock("a.json") is lock
    assert store.lock("b.json") is not lock
