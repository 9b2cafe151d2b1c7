"""Tests for engine binary resolution."""

import os
import shutil
from pathlib import Path

import pytest

from fishbowl.engine import locate
from fishbowl.engine.errors import EngineNotFoundError, ProcessSpawnError
from fishbowl.engine.locate import find_engine_binary, is_executable_file


def _make_executable(path: Path) -> str:
    path.write_text("#!/bin/sh\n")
    path.chmod(0o755)
    return str(path)


@pytest.fixture
def no_path_lookup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(shutil, "which", lambda name: None)


class TestFindEngineBinary:
    def test_explicit_path_wins(self, tmp_path: Path, no_path_lookup: None) -> None:
        explicit = _make_executable(tmp_path / "mine")
        other = _make_executable(tmp_path / "other")
        assert find_engine_binary([other], explicit=explicit) == explicit

    def test_first_executable_candidate(self, tmp_path: Path, no_path_lookup: None) -> None:
        plain = tmp_path / "not-executable"
        plain.write_text("data")
        plain.chmod(0o644)
        good = _make_executable(tmp_path / "good")
        assert find_engine_binary([str(tmp_path / "missing"), str(plain), good]) == good

    def test_directories_are_skipped(self, tmp_path: Path, no_path_lookup: None) -> None:
        assert not is_executable_file(str(tmp_path))
        with pytest.raises(EngineNotFoundError):
            find_engine_binary([str(tmp_path)])

    def test_home_is_expanded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, no_path_lookup: None
    ) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        binary = _make_executable(tmp_path / "engine")
        assert find_engine_binary(["~/engine"]) == binary

    def test_falls_back_to_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(shutil, "which", lambda name: f"/somewhere/{name}")
        assert find_engine_binary([], name="fish") == "/somewhere/fish"

    def test_error_lists_locations(self, tmp_path: Path, no_path_lookup: None) -> None:
        missing = str(tmp_path / "missing")
        with pytest.raises(EngineNotFoundError) as info:
            find_engine_binary([missing], name="fish")
        assert info.value.tried == [missing, "PATH:fish"]
        assert missing in str(info.value)
        assert isinstance(info.value, ProcessSpawnError)

    def test_default_candidates(self) -> None:
        assert "/usr/games/stockfish" in locate.DEFAULT_CANDIDATES
        assert all(os.path.basename(c) == "stockfish" for c in locate.DEFAULT_CANDIDATES)
