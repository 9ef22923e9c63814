"""Shared fixtures for pipeline tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from profcov.config.models import ProfcovConfig
from tests.pipeline.fakes import FakeToolRunner


@pytest.fixture
def fake_runner() -> FakeToolRunner:
    return FakeToolRunner()


@pytest.fixture
def crate_root(tmp_path: Path) -> Path:
    """A minimal crate directory with a manifest and one source file."""
    root = tmp_path / "crate"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text('[package]\nname = "demo"\nversion = "0.1.0"\n')
    (root / "src" / "lib.rs").write_text("pub fn add(a: u32, b: u32) -> u32 { a + b }\n")
    return root


@pytest.fixture
def default_config() -> ProfcovConfig:
    return ProfcovConfig()
