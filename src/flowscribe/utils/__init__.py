"""
Utilities module - Common utility functions.
"""

from flowscribe.utils.logging import JsonFormatter, setup_logging
from flowscribe.utils.timeouts import with_timeout, read_or_default
from flowscribe.utils.identifiers import (
    make_page_class_name,
    make_safe_identifier,
    to_camel_case,
    to_pascal_case,
    to_snake_case,
)

__all__ = [
    "setup_logging",
    "JsonFormatter",
    "with_timeout",
    "read_or_default",
    "make_page_class_name",
    "make_safe_identifier",
    "to_camel_case",
    "to_pascal_case",
    "to_snake_case",
]
