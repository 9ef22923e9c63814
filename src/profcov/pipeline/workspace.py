"""Artifact workspace: where build output, raw profiles and reports live.

Raw profile files are named by process id and module signature only, never
by run, so files left over from an earlier run would be merged into the
current report. ``reset()`` removes them together with the build output
directory; the test stage calls it once before running tests.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from profcov.config.constants import (
    HTML_DIRNAME,
    LCOV_FILENAME,
    MANIFEST_NAME,
    PROFRAW_SUFFIX,
)
from profcov.config.models import WorkspaceConfig
from profcov.core.errors import WorkspaceError
from profcov.core.logging import get_logger

log = get_logger(__name__)


def find_workspace_root(start_path: Path | None = None) -> Path:
    """Find the nearest directory containing Cargo.toml.

    Walks up from ``start_path`` (default: current working directory). The
    outermost manifest is not searched for; the first one wins, matching a
    script run from the crate directory. Falls back to ``start_path`` when no
    manifest is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    start = start_path.resolve()
    current = start

    while current != current.parent:
        if (current / MANIFEST_NAME).exists():
            return current
        current = current.parent

    if (current / MANIFEST_NAME).exists():
        return current

    return start


@dataclass(frozen=True, slots=True)
class ResetReport:
    """What a workspace reset removed."""

    removed_profiles: int
    removed_build_dir: bool


@dataclass(frozen=True, slots=True)
class ArtifactWorkspace:
    """Filesystem layout of one pipeline run."""

    root: Path
    build_dir: Path
    profile_pattern: str
    css_file: Path | None = None

    @classmethod
    def from_config(cls, root: Path, config: WorkspaceConfig) -> ArtifactWorkspace:
        root = root.resolve()
        return cls(
            root=root,
            build_dir=root / config.build_dir,
            profile_pattern=config.profile_pattern,
            css_file=root / config.css_file if config.css_file else None,
        )

    @property
    def lcov_path(self) -> Path:
        """Merged line-coverage report."""
        return self.build_dir / LCOV_FILENAME

    @property
    def html_dir(self) -> Path:
        """Rendered report directory."""
        return self.build_dir / HTML_DIRNAME

    def raw_profiles(self) -> list[Path]:
        """Raw profile files currently in the workspace root, sorted by name."""
        return sorted(
            p for p in self.root.glob(f"*{PROFRAW_SUFFIX}") if p.is_file()
        )

    def remove_raw_profiles(self) -> int:
        """Delete every raw profile file in the root. Returns the count removed."""
        removed = 0
        for path in self.raw_profiles():
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                raise WorkspaceError.cleanup_failed(str(path), str(e)) from e
            removed += 1
        return removed

    def remove_build_output(self) -> bool:
        """Delete the build output directory. Returns False if it did not exist."""
        if not self.build_dir.exists():
            return False
        try:
            shutil.rmtree(self.build_dir)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise WorkspaceError.cleanup_failed(str(self.build_dir), str(e)) from e
        return True

    def reset(self) -> ResetReport:
        """Remove stale raw profiles, then the build output directory.

        Postcondition: no ``*.profraw`` file in the root and no build output
        directory.
        """
        removed_profiles = self.remove_raw_profiles()
        removed_build_dir = self.remove_build_output()
        log.info(
            "workspace_reset",
            root=str(self.root),
            removed_profiles=removed_profiles,
            removed_build_dir=removed_build_dir,
        )
        return ResetReport(
            removed_profiles=removed_profiles,
            removed_build_dir=removed_build_dir,
        )
