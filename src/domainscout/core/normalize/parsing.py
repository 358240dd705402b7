"""
Parsing utilities for domain names and domain list files.

Handles normalization, validation and de-duplication of domain names.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


class InputError(Exception):
    """Domain list could not be read."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


# =============================================================================
# Domain Normalization
# =============================================================================


_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://")
_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")

MAX_DOMAIN_LENGTH = 253


def normalize_domain(value: str) -> str:
    """Normalize a domain name for storage and lookup.

    Strips whitespace, lowercases, removes a URL scheme, a leading
    ``www.``, any path/query/fragment, a port and a trailing dot.

        >>> normalize_domain("  https://www.Example.COM/path?q=1 ")
        'example.com'
    """
    text = value.strip().lower()
    text = _SCHEME_RE.sub("", text)

    for sep in ("/", "?", "#"):
        text = text.split(sep, 1)[0]

    # user@host and host:port
    text = text.rsplit("@", 1)[-1]
    text = text.split(":", 1)[0]

    if text.startswith("www."):
        text = text[4:]

    return text.rstrip(".")


def to_ascii(domain: str) -> str:
    """IDNA (punycode) form of a normalized domain.

        >>> to_ascii("bücher.de")
        'xn--bcher-kva.de'

    Raises:
        ValueError: If a label cannot be IDNA-encoded
    """
    try:
        return domain.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise ValueError(f"cannot IDNA-encode {domain!r}: {e}") from e


def is_valid_domain(domain: str) -> bool:
    """Check a normalized domain is a valid hostname with a TLD.

    Internationalized names are checked in their IDNA-encoded form.
    """
    if not domain:
        return False

    try:
        ascii_domain = to_ascii(domain)
    except ValueError:
        return False

    if len(ascii_domain) > MAX_DOMAIN_LENGTH:
        return False

    labels = ascii_domain.split(".")
    if len(labels) < 2:
        return False

    return all(_LABEL_RE.match(label) for label in labels)


def validate_domain(value: str) -> str:
    """Normalize and validate a domain name.

    Raises:
        ValueError: If the value is not a valid domain after normalization
    """
    domain = normalize_domain(value)
    if not is_valid_domain(domain):
        raise ValueError(f"invalid domain name: {value!r}")
    return domain


# =============================================================================
# Domain Lists
# =============================================================================


def dedupe_domains(values: Iterable[str]) -> list[str]:
    """Normalize, validate and de-duplicate domains preserving first-seen order.

    Blank entries are ignored; invalid entries are logged and skipped.
    """
    seen: set[str] = set()
    domains: list[str] = []

    for raw in values:
        if not raw.strip():
            continue
        try:
            domain = validate_domain(raw)
        except ValueError:
            logger.warning(f"Skipping invalid domain entry: {raw.strip()!r}")
            continue
        if domain in seen:
            continue
        seen.add(domain)
        domains.append(domain)

    return domains


def parse_domain_list(text: str) -> list[str]:
    """Parse newline-delimited domain list content.

    Blank lines and lines starting with ``#`` are ignored.
    """
    lines = (line for line in text.splitlines() if not line.lstrip().startswith("#"))
    return dedupe_domains(lines)


def load_domain_list(path: Path | str) -> list[str]:
    """Read and parse a domain list file.

    Raises:
        InputError: If the file is missing or unreadable
    """
    path = Path(path)
    if not path.is_file():
        raise InputError(f"Domains file not found: {path}", path=path)

    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise InputError(f"Cannot read domains file {path}: {e}", path=path) from e

    return parse_domain_list(text)


# =============================================================================
# Text
# =============================================================================


def normalize_whitespace(text: str | None) -> str:
    """Normalize whitespace in text."""
    if text is None:
        return ""
    return " ".join(text.split())
