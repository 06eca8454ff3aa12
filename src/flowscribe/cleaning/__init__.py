"""
Step cleaning.
"""

from flowscribe.cleaning.step_cleaner import StepCleaner, clean

__all__ = [
    "StepCleaner",
    "clean",
]
