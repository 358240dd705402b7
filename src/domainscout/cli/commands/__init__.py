"""CLI command modules."""

from . import check, config, results

__all__ = [
    "check",
    "config",
    "results",
]
