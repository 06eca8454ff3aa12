"""
Locator Status Registry - Health of recorded locators.

Keys are ``"{strategy}:{locatorText}"``. Fragile fallbacks are entered as
``warning`` when they are first compiled; test runs or the user can move
them to ``healthy`` or ``failing``. Editing a locator carries its status
over to the new key.
"""

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from flowscribe.exceptions import ConfigurationError
from flowscribe.models.locators import Locator, locator_key
from flowscribe.storage.bundle_writer import atomic_write_text

logger = logging.getLogger(__name__)

LocatorRef = Union[Locator, str]


class LocatorState(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    FAILING = "failing"


def _key(locator: LocatorRef) -> str:
    return locator if isinstance(locator, str) else locator_key(locator)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LocatorStatusRegistry:
    """
    JSON-backed locator status map.
    
    Example:
        >>> statuses = LocatorStatusRegistry.load("generated/.flowscribe/locators.json")
        >>> statuses.set(CssLocator("div.row"), LocatorState.FAILING, "not found")
        >>> statuses.save()
    """
    
    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path else None
        self._entries: Dict[str, Dict[str, Any]] = {}
    
    @classmethod
    def load(cls, path: Union[str, Path]) -> "LocatorStatusRegistry":
        registry = cls(path)
        file = Path(path)
        if not file.exists():
            return registry
        try:
            data = json.loads(file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Invalid locator status file {file}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Locator status file {file} must be a JSON object")
        registry._entries = data
        return registry
    
    def save(self, path: Optional[Union[str, Path]] = None) -> None:
        target = Path(path) if path else self._path
        if target is None:
            raise ConfigurationError("Locator status registry has no file path")
        atomic_write_text(target, self.to_json())
    
    def to_json(self) -> str:
        """Serialized file content, as save() writes it."""
        return json.dumps(self._entries, indent=2, sort_keys=True) + "\n"
    
    def get(self, locator: LocatorRef) -> Optional[Dict[str, Any]]:
        return self._entries.get(_key(locator))
    
    def state(self, locator: LocatorRef) -> Optional[LocatorState]:
        entry = self.get(locator)
        return LocatorState(entry["state"]) if entry else None
    
    def set(self, locator: LocatorRef, state: LocatorState, note: str = "") -> Dict[str, Any]:
        entry = {"state": LocatorState(state).value, "note": note, "updatedAt": _now()}
        self._entries[_key(locator)] = entry
        return entry
    
    def rename(self, old: LocatorRef, new: LocatorRef) -> bool:
        """
        Move the status of an edited locator to its new key.
        
        Returns:
            False if the old locator had no status
        """
        entry = self._entries.pop(_key(old), None)
        if entry is None:
            return False
        entry = dict(entry, updatedAt=_now())
        self._entries[_key(new)] = entry
        logger.debug(f"Locator status moved from {_key(old)} to {_key(new)}")
        return True
    
    def remove(self, locator: LocatorRef) -> None:
        self._entries.pop(_key(locator), None)
    
    def track_flagged(self, locators: Iterable[LocatorRef]) -> int:
        """
        Enter flagged locators as warnings unless already tracked.
        
        Returns:
            Number of newly tracked locators
        """
        added = 0
        for locator in locators:
            if _key(locator) not in self._entries:
                self.set(locator, LocatorState.WARNING, "fragile fallback locator")
                added += 1
        return added
    
    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return dict(self._entries)
    
    def __len__(self) -> int:
        return len(self._entries)
