import os
from pathlib import Path

import pytest

from configflow.env_loader import EnvLoader, parse_entries


def test_env_loader_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("FOO=file\nBAR=file\n")

    monkeypatch.setenv("BAR", "env")

    loader = EnvLoader(env_file)
    data = loader.load({"BAR": "override", "BAZ": "override"})

    assert data["FOO"] == "file"
    assert data["BAR"] == "override"
    assert data["BAZ"] == "override"


def test_env_loader_process_env_beats_env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / "app.env"
    env_file.write_text("CF_TEST_BAR=file\n")
    monkeypatch.setenv("CF_TEST_BAR", "env")

    assert EnvLoader(env_file).load()["CF_TEST_BAR"] == "env"


def test_env_loader_ignores_cwd_env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("CF_TEST_ONLY_IN_FILE=1\n")
    monkeypatch.chdir(tmp_path)

    assert "CF_TEST_ONLY_IN_FILE" not in EnvLoader().load()


def test_env_loader_missing_env_file(tmp_path: Path) -> None:
    data = EnvLoader(tmp_path / "missing.env", entries=["A=1"]).load()
    assert data == {"A": "1"}


def test_env_loader_entries_replace_process_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CF_TEST_PROCESS", "yes")

    data = EnvLoader(entries=["APP_PORT=8080"]).load()

    assert data == {"APP_PORT": "8080"}
    assert "CF_TEST_PROCESS" in os.environ


def test_parse_entries_splits_on_first_equals() -> None:
    assert parse_entries(["A=1", "B=x=y", "C=", "BROKEN"]) == {"A": "1", "B": "x=y", "C": ""}
