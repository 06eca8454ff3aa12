"""
Target platforms - per-application heuristics behind one interface.
"""

from flowscribe.platforms.base import PageRule, TargetPlatform
from flowscribe.platforms.registry import (
    PlatformRegistry,
    register_platform,
    get_platform,
    list_platforms,
)
from flowscribe.platforms.d365 import D365Platform

__all__ = [
    "PageRule",
    "TargetPlatform",
    "PlatformRegistry",
    "register_platform",
    "get_platform",
    "list_platforms",
    "D365Platform",
]
