"""Domain availability checkers."""

from .base import AvailabilityChecker, CheckerFactory, classify_page_text
from .registrar import (
    LookupState,
    LookupTrace,
    RegistrarChecker,
    registrar_checker_factory,
)

__all__ = [
    "AvailabilityChecker",
    "CheckerFactory",
    "classify_page_text",
    "LookupState",
    "LookupTrace",
    "RegistrarChecker",
    "registrar_checker_factory",
]
