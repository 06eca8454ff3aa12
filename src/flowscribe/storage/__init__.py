"""
Persistence: page registry, locator status and generated bundles.
"""

from flowscribe.storage.bundle_writer import BundleWriter, atomic_write_text
from flowscribe.storage.locator_status import LocatorState, LocatorStatusRegistry
from flowscribe.storage.page_registry import PageRegistry

__all__ = [
    "BundleWriter",
    "atomic_write_text",
    "LocatorState",
    "LocatorStatusRegistry",
    "PageRegistry",
]
