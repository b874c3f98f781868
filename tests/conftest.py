"""Pytest configuration and fixtures for the offline unit tests."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from whisk_catalog.core.config import Settings
from whisk_catalog.services.cloudant import Credential


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        whisk_home=tmp_path,
        wsk_cli="wsk",
        wsk_auth="test-auth-key",
        wskprops_path=tmp_path / "no.wskprops",
        trigger_settle_seconds=0,
        activation_log_wait=1,
        trigger_log_wait=1,
        log_poll_interval=0.01,
    )


@pytest.fixture
def thumbnail_cred() -> Credential:
    return Credential(user="thumbuser", password="thumbpass", dbname="thumbnails")


@pytest.fixture
def image_cred() -> Credential:
    return Credential(
        user="imageuser",
        password="imagepass",
        dbname="images",
        explicit_host="couch.example.test",
    )


@pytest.fixture
def make_png(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a solid-colour PNG of the given size."""

    def _make(name: str = "source.png", size: tuple[int, int] = (64, 48)) -> Path:
        path = tmp_path / name
        Image.new("RGB", size, color="orange").save(path, format="PNG")
        return path

    return _make


class FakeRunner:
    """
    Stand-in for subprocess.run that records commands.

    ``responder`` maps the CLI arguments (after the global flags) to
    ``(exit_code, stdout, stderr)``.
    """

    def __init__(self, responder: Callable[[list[str]], tuple[int, str, str]] | None = None):
        self.responder = responder or (lambda args: (0, "ok", ""))
        self.commands: list[list[str]] = []

    @staticmethod
    def strip_globals(cmd: list[str]) -> list[str]:
        args = list(cmd[1:])
        out = []
        i = 0
        while i < len(args):
            if args[i] in ("--auth", "--apihost"):
                i += 2
                continue
            if args[i] == "-i":
                i += 1
                continue
            out.append(args[i])
            i += 1
        return out

    def __call__(self, cmd, capture_output=True, text=True, timeout=None):
        self.commands.append(list(cmd))
        code, stdout, stderr = self.responder(self.strip_globals(list(cmd)))
        return subprocess.CompletedProcess(cmd, code, stdout=stdout, stderr=stderr)

    @property
    def calls(self) -> list[list[str]]:
        """Recorded commands without the executable and global flags."""
        return [self.strip_globals(c) for c in self.commands]


@pytest.fixture
def fake_runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    """Patch subprocess.run inside the CLI wrapper."""
    runner = FakeRunner()
    monkeypatch.setattr("whisk_catalog.services.wsk.subprocess.run", runner)
    return runner
