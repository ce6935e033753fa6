"""
Pytest configuration for the consistency audit.

Гарантирует, что пакет `so_audit` доступен для импортов в тестах,
даже если pytest запускается из корня проекта без установки пакета.

Использование:
    pytest tests/ -v
"""

import os
import sys
import textwrap
from pathlib import Path

import pytest


def pytest_sessionstart(session):  # type: ignore[override]
    """Добавить корень проекта в sys.path перед запуском тестов."""
    tests_dir = os.path.dirname(os.path.abspath(__file__))
    project_root = os.path.dirname(tests_dir)

    if project_root not in sys.path:
        sys.path.insert(0, project_root)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Без SO_AUDIT_* из окружения и без чужого .env в рабочем каталоге."""
    for key in list(os.environ):
        if key.startswith("SO_AUDIT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def write_doc(tmp_path):
    """Фабрика: записать markdown-документ во временный каталог."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(text), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_config(write_doc):
    """Фабрика AuditConfig поверх временных документов."""
    from so_audit.config import load_config

    def _make(objectives=None, requirements=None, glossary=None, **overrides):
        paths = {}
        if objectives is not None:
            paths["objectives_path"] = write_doc("objectives.md", objectives)
        if requirements is not None:
            paths["requirements_path"] = write_doc("requirements.md", requirements)
        if glossary is not None:
            paths["glossary_path"] = write_doc("glossary.md", glossary)
        return load_config(**paths, **overrides)

    return _make
