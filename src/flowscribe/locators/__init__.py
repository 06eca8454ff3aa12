"""
Locators - strategy waterfall for stable element locators.
"""

from flowscribe.locators.extractor import (
    STRATEGIES,
    ExtractionInput,
    LocatorExtractor,
    choose_locator,
)

__all__ = [
    "STRATEGIES",
    "ExtractionInput",
    "LocatorExtractor",
    "choose_locator",
]
