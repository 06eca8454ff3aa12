"""
DOM Interface - What the recorder needs from a browser driver.

The recording pipeline never talks to Playwright directly. It reads the
live page through these two abstractions, which keeps every heuristic
testable against in-memory fakes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from flowscribe.models.events import ElementRef, ElementSnapshot


@dataclass
class AccessibleNode:
    """Role and computed accessible name of one element."""
    role: str
    name: str = ""


class DomElement(ABC):
    """
    A live element reference.
    
    All reads may raise DomError subclasses (detached element, destroyed
    context). Callers bound them with flowscribe.utils.with_timeout.
    """
    
    @abstractmethod
    async def ancestry(self, max_depth: int) -> List[ElementSnapshot]:
        """
        Snapshot this element and up to ``max_depth`` ancestors.
        
        Returns:
            Snapshots, this element first
        """
        pass
    
    @abstractmethod
    async def accessible_node(self) -> Optional[AccessibleNode]:
        """Query the accessibility tree scoped to this element."""
        pass


class PageContext(ABC):
    """
    The page being recorded.
    """
    
    @abstractmethod
    def current_url(self) -> str:
        """
        Current main-frame URL.
        
        Raises:
            ContextDestroyedError: if the page is mid-navigation
        """
        pass
    
    @abstractmethod
    async def title(self) -> str:
        pass
    
    @abstractmethod
    async def wait_for_load(self) -> None:
        """Wait for DOMContentLoaded of the current document."""
        pass
    
    @abstractmethod
    async def texts(self, selectors: List[str], max_length: int = 0) -> List[str]:
        """
        Trimmed text of every element matching any selector, in document order.
        
        Args:
            selectors: CSS selectors, tried in order
            max_length: Drop texts longer than this (0 keeps everything)
        """
        pass
    
    @abstractmethod
    async def first_text(self, selectors: List[str]) -> Optional[str]:
        """Text of the first matching element with non-empty text."""
        pass
    
    @abstractmethod
    async def resolve(self, ref: ElementRef, index: int = 0) -> Optional[DomElement]:
        """
        Re-find an element of a captured ancestor chain.
        
        Args:
            ref: Captured element reference
            index: Position in the chain (0 is the event target)
            
        Returns:
            The element, or None if it is gone
        """
        pass
