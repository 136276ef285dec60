# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.tasks import TaskFileStore, get_task_store


@pytest.fixture()
def tasks_dir(tmp_path: Path) -> Path:
    """每个用例独立的存储目录（服务本身不会创建目录）"""
    path = tmp_path / "tasks"
    path.mkdir()
    return path


@pytest.fixture()
def store(tasks_dir: Path) -> TaskFileStore:
    return TaskFileStore(tasks_dir)


@pytest.fixture()
def client(store: TaskFileStore) -> Iterator[TestClient]:
    """通过 dependency_overrides 把 TestClient 接到本用例的存储上"""
    app.dependency_overrides[get_task_store] = lambda: store
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
