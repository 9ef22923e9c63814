"""Instrumentation configuration assembly.

The compiler flags needed for coverage are kept in one enumerated table,
``FLAG_TABLE``: one row per flag, with what it does and its position in each
flag category (rustc or rustdoc) that receives it. ``assemble_instrumentation``
orders each category's flags by position and produces an immutable
``InstrumentationConfig`` that every stage receives explicitly.

Order is significant. Later flags win over earlier ones inside the compiler,
so each category value is the plain concatenation of its flags in position
order; nothing is parsed or merged here.
"""

from __future__ import annotations

import shlex
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from profcov.config.constants import (
    ENV_CARGO_INCREMENTAL,
    ENV_RUSTC_BOOTSTRAP,
    ENV_RUSTDOCFLAGS,
    ENV_RUSTFLAGS,
)


class FlagCategory(str, Enum):
    """Flag groups, each exported under its own environment variable."""

    RUSTC = ENV_RUSTFLAGS
    RUSTDOC = ENV_RUSTDOCFLAGS


def _at(*, rustc: int | None = None, rustdoc: int | None = None) -> Mapping[FlagCategory, int]:
    """Per-category positions for one flag row."""
    positions = {FlagCategory.RUSTC: rustc, FlagCategory.RUSTDOC: rustdoc}
    return MappingProxyType({c: p for c, p in positions.items() if p is not None})


@dataclass(frozen=True, slots=True)
class FlagSpec:
    """One row of the flag table.

    ``positions`` maps each category that receives the flag to the flag's
    position inside that category's value. Categories may order shared flags
    differently.
    """

    flag: str
    effect: str
    positions: Mapping[FlagCategory, int]

    @property
    def categories(self) -> frozenset[FlagCategory]:
        return frozenset(self.positions)


FLAG_TABLE: tuple[FlagSpec, ...] = (
    FlagSpec("-Zprofile", "emit gcov-style profiling counters", _at(rustc=1, rustdoc=1)),
    FlagSpec(
        "-Ccodegen-units=1",
        "one codegen unit so every region links together",
        _at(rustc=2, rustdoc=2),
    ),
    FlagSpec(
        "-Cinline-threshold=0", "never inline instrumented functions", _at(rustc=3, rustdoc=3)
    ),
    FlagSpec("-Copt-level=0", "no optimisation passes over probes", _at(rustc=4)),
    FlagSpec(
        "-Clink-dead-code", "keep unused code so it reports zero hits", _at(rustc=5, rustdoc=4)
    ),
    FlagSpec(
        "-Coverflow-checks=off", "no arithmetic overflow runtime checks", _at(rustc=6, rustdoc=5)
    ),
    # rustdoc takes the panic pair in the opposite order
    FlagSpec(
        "-Zpanic_abort_tests", "test harness compatible with panic=abort", _at(rustc=7, rustdoc=7)
    ),
    FlagSpec("-Cpanic=abort", "abort instead of unwinding on panic", _at(rustc=8, rustdoc=6)),
    FlagSpec("-Cinstrument-coverage=all", "line and branch coverage instrumentation", _at(rustc=9)),
)


# Scalar settings exported alongside the flag categories
TOOLCHAIN_ENV: Mapping[str, str] = MappingProxyType(
    {
        ENV_CARGO_INCREMENTAL: "0",  # incremental compilation off
        ENV_RUSTC_BOOTSTRAP: "1",  # -Z flags on a stable toolchain
    }
)


@dataclass(frozen=True)
class InstrumentationConfig:
    """Assembled flag groups, ready to export.

    ``categories`` is ordered: category order follows ``FlagCategory`` and
    flags inside a category follow table order.
    """

    categories: Mapping[FlagCategory, tuple[str, ...]]
    toolchain_env: Mapping[str, str] = field(default_factory=lambda: TOOLCHAIN_ENV)

    def flags(self, category: FlagCategory) -> tuple[str, ...]:
        return self.categories.get(category, ())

    def value(self, category: FlagCategory) -> str:
        """Full environment value for a category."""
        return " ".join(self.flags(category))

    def to_env(self) -> dict[str, str]:
        """Environment entries every instrumented cargo invocation needs."""
        env = dict(self.toolchain_env)
        for category in self.categories:
            env[category.value] = self.value(category)
        return env

    def to_shell(self) -> str:
        """``export`` lines for sourcing into a POSIX shell."""
        return "\n".join(
            f"export {name}={shlex.quote(value)}" for name, value in self.to_env().items()
        )


def assemble_instrumentation(table: Iterable[FlagSpec] = FLAG_TABLE) -> InstrumentationConfig:
    """Build the instrumentation configuration from a flag table.

    Flags sharing a position keep their table order.
    """
    rows = tuple(table)
    categories = {
        category: tuple(
            row.flag
            for row in sorted(
                (r for r in rows if category in r.positions),
                key=lambda r: r.positions[category],
            )
        )
        for category in FlagCategory
    }
    return InstrumentationConfig(categories=MappingProxyType(categories))
