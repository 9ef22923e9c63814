"""Shared fixtures for CLI tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from tests.pipeline.fakes import FakeToolRunner


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Keep the caller's cargo options and profcov settings out of CLI runs."""
    monkeypatch.delenv("CARGO_OPTIONS", raising=False)
    for key in list(os.environ):
        if key.startswith("PROFCOV__"):
            monkeypatch.delenv(key)
    with patch("profcov.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"):
        yield


@pytest.fixture
def crate_root(tmp_path: Path) -> Path:
    root = tmp_path / "crate"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text('[package]\nname = "demo"\nversion = "0.1.0"\n')
    (root / "src" / "lib.rs").write_text("pub fn one() -> u32 { 1 }\n")
    return root


@pytest.fixture
def fake_runner() -> Iterator[FakeToolRunner]:
    """Route every tool invocation through a fake and report all tools present."""
    runner = FakeToolRunner()
    with (
        patch("profcov.pipeline.runner.SubprocessRunner", return_value=runner),
        patch("profcov.pipeline.tools.shutil.which", side_effect=lambda n: f"/usr/bin/{n}"),
    ):
        yield runner
