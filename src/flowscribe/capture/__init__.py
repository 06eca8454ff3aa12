"""
Event capture - listeners, click resolution and input debouncing.
"""

from flowscribe.capture.ancestry import (
    DEFAULT_RESOLVERS,
    WalkContext,
    in_nav_pane,
    walk_ancestors,
)
from flowscribe.capture.debounce import InputDebouncer
from flowscribe.capture.listeners import EventCapture

__all__ = [
    "DEFAULT_RESOLVERS",
    "WalkContext",
    "in_nav_pane",
    "walk_ancestors",
    "InputDebouncer",
    "EventCapture",
]
