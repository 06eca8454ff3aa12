"""
Interfaces module - Abstract browser access used by the pipeline.
"""

from flowscribe.interfaces.dom import AccessibleNode, DomElement, PageContext

__all__ = [
    "AccessibleNode",
    "DomElement",
    "PageContext",
]
