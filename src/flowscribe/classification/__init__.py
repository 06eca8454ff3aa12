"""
Page classification.
"""

from flowscribe.classification.page_classifier import (
    UNKNOWN_PAGE_ID,
    PageClassifier,
    form_name_to_page_id,
    unknown_page,
)

__all__ = [
    "UNKNOWN_PAGE_ID",
    "PageClassifier",
    "form_name_to_page_id",
    "unknown_page",
]
