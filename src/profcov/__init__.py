"""profcov - coverage collection pipeline for Cargo projects."""

__version__ = "0.1.0"
