"""
Recording engine.
"""

from flowscribe.recorder.engine import (
    EngineState,
    RecordingEngine,
    click_label,
    click_skip_reason,
    input_label,
)

__all__ = [
    "EngineState",
    "RecordingEngine",
    "click_label",
    "click_skip_reason",
    "input_label",
]
