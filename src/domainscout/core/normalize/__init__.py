"""Domain normalization and canonical record types."""

from .parsing import (
    InputError,
    normalize_domain,
    to_ascii,
    is_valid_domain,
    validate_domain,
    dedupe_domains,
    parse_domain_list,
    load_domain_list,
    normalize_whitespace,
)
from .canonical import (
    DomainStatus,
    DomainRecord,
    RECORDS_ADAPTER,
    domain_set,
    dedupe_records,
    count_by_status,
)

__all__ = [
    # Parsing
    "InputError",
    "normalize_domain",
    "to_ascii",
    "is_valid_domain",
    "validate_domain",
    "dedupe_domains",
    "parse_domain_list",
    "load_domain_list",
    "normalize_whitespace",
    # Canonical
    "DomainStatus",
    "DomainRecord",
    "RECORDS_ADAPTER",
    "domain_set",
    "dedupe_records",
    "count_by_status",
]
