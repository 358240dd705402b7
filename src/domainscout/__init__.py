"""
DomainScout - Terminal-first domain availability checker.

A CLI tool that drives browser sessions against a registrar search page,
checks candidate domain names in parallel, and keeps the results in a
single atomically-rewritten JSON file.
"""

__version__ = "0.1.0"
__app_name__ = "domainscout"
