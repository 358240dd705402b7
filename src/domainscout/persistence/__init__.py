"""Result persistence layer."""

from .store import AppendOutcome, ResultStore, StoreReadError

__all__ = [
    "AppendOutcome",
    "ResultStore",
    "StoreReadError",
]
