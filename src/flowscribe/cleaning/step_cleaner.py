"""
Step Cleaner - Turn a raw recording into the steps a test should replay.

One left-to-right pass, tracking the last kept action:

- navigations to identity providers or redirect hops are dropped
- a navigation right after a kept click is the click's own route change
  and is dropped
- a navigation followed by another valid navigation before the next user
  action is an intermediate hop; only the last one survives
- explicit waits are dropped (targeted waits are injected at generation)
- a click on the same locator as the previous kept click is a duplicate
  delivery and is dropped

Cleaning is pure and idempotent: ``clean(clean(s)) == clean(s)``. Orders
are preserved rather than renumbered.
"""

import logging
from typing import List, Optional, Sequence

from flowscribe.models.steps import RecordedStep, StepAction
from flowscribe.platforms.base import TargetPlatform
from flowscribe.platforms.registry import get_platform

logger = logging.getLogger(__name__)


class StepCleaner:
    """
    Cleans recorded steps for one target platform.
    
    Example:
        >>> cleaner = StepCleaner(get_platform("d365"))
        >>> cleaned = cleaner.clean(session.steps)
    """
    
    def __init__(self, platform: Optional[TargetPlatform] = None):
        self._platform = platform or get_platform()
    
    def is_ignored_navigation(self, step: RecordedStep) -> bool:
        if step.action != StepAction.NAVIGATE:
            return False
        return self._platform.is_ignored_navigation(
            step.page_url, step.description, step.page_id
        )
    
    def is_intermediate_navigation(self, steps: Sequence[RecordedStep], index: int) -> bool:
        """
        Whether a later valid navigation arrives before the next user action.
        
        Ignored navigations, waits and comments are looked past.
        """
        for step in steps[index + 1:]:
            if step.action == StepAction.NAVIGATE:
                if not self.is_ignored_navigation(step):
                    return True
                continue
            if step.is_user_action:
                return False
        return False
    
    def clean(self, steps: Sequence[RecordedStep]) -> List[RecordedStep]:
        """
        Clean a step sequence.
        
        Args:
            steps: Steps in recording order
            
        Returns:
            A new list; the input is not modified
        """
        cleaned: List[RecordedStep] = []
        last_action: Optional[StepAction] = None
        last_click: Optional[RecordedStep] = None
        
        for index, step in enumerate(steps):
            if step.action == StepAction.NAVIGATE:
                if self.is_ignored_navigation(step):
                    continue
                if last_action == StepAction.CLICK:
                    continue
                if self.is_intermediate_navigation(steps, index):
                    continue
                cleaned.append(step)
                last_action = StepAction.NAVIGATE
                last_click = None
            
            elif step.action == StepAction.WAIT:
                continue
            
            elif step.action == StepAction.CLICK:
                if (
                    last_action == StepAction.CLICK
                    and last_click is not None
                    and last_click.locator == step.locator
                ):
                    continue
                cleaned.append(step)
                last_action = StepAction.CLICK
                last_click = step
            
            elif step.action == StepAction.COMMENT:
                cleaned.append(step)
            
            else:
                cleaned.append(step)
                last_action = step.action
                last_click = None
        
        dropped = len(steps) - len(cleaned)
        if dropped:
            logger.debug(f"Cleaner dropped {dropped} of {len(steps)} steps")
        return cleaned


def clean(steps: Sequence[RecordedStep], platform: Optional[TargetPlatform] = None) -> List[RecordedStep]:
    """Clean steps with a throwaway StepCleaner."""
    return StepCleaner(platform).clean(steps)
