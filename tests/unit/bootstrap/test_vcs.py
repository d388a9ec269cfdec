"""Unit tests for VCS fingerprint retrieval."""

import shutil
import subprocess
from pathlib import Path

import pytest

from index_bootstrap import vcs
from index_bootstrap.vcs import get_current_fingerprint, get_git_environment

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(repo: Path, *args: str) -> None:
    subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test",
            "-c",
            "user.email=test@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        check=True,
        capture_output=True,
    )


class TestGitEnvironment:
    """Tests for the safe.directory environment."""

    def test_safe_directory_is_first_entry(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GIT_CONFIG_COUNT", raising=False)

        env = get_git_environment(tmp_path)

        assert env["GIT_CONFIG_COUNT"] == "1"
        assert env["GIT_CONFIG_KEY_0"] == "safe.directory"
        assert env["GIT_CONFIG_VALUE_0"] == str(tmp_path)

    def test_existing_entries_are_shifted(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GIT_CONFIG_COUNT", "1")
        monkeypatch.setenv("GIT_CONFIG_KEY_0", "core.autocrlf")
        monkeypatch.setenv("GIT_CONFIG_VALUE_0", "false")

        env = get_git_environment(tmp_path)

        assert env["GIT_CONFIG_COUNT"] == "2"
        assert env["GIT_CONFIG_KEY_0"] == "safe.directory"
        assert env["GIT_CONFIG_KEY_1"] == "core.autocrlf"
        assert env["GIT_CONFIG_VALUE_1"] == "false"


class TestGetCurrentFingerprint:
    """Tests for reading the current commit hash."""

    @requires_git
    def test_returns_head_commit(self, tmp_path):
        _git(tmp_path, "init", "-q")
        (tmp_path / "file.txt").write_text("content")
        _git(tmp_path, "add", "file.txt")
        _git(tmp_path, "commit", "-q", "-m", "initial")
        expected = subprocess.run(
            ["git", "rev-parse", "HEAD"], cwd=tmp_path, capture_output=True, text=True, check=True
        ).stdout.strip()

        assert get_current_fingerprint(tmp_path) == expected

    @requires_git
    def test_none_outside_repository(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path.parent))
        assert get_current_fingerprint(tmp_path) is None

    def test_none_when_git_missing(self, tmp_path, monkeypatch):
        def missing(*args, **kwargs):
            raise FileNotFoundError("git")

        monkeypatch.setattr(vcs.subprocess, "run", missing)
        assert get_current_fingerprint(tmp_path) is None

    def test_none_on_timeout(self, tmp_path, monkeypatch):
        def slow(*args, **kwargs):
            raise subprocess.TimeoutExpired(cmd="git", timeout=5)

        monkeypatch.setattr(vcs.subprocess, "run", slow)
        assert get_current_fingerprint(tmp_path) is None

    def test_empty_output_is_none(self, tmp_path, monkeypatch):
        def empty(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 0, stdout="\n", stderr="")

        monkeypatch.setattr(vcs.subprocess, "run", empty)
        assert get_current_fingerprint(tmp_path) is None
