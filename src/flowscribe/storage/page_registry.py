"""
Page Registry - Pages learned across recordings.

Persisted as one JSON object. Page entries are keyed by page id; every
page with a menu reference also gets an ``mi:<menuRef>`` alias key that
points back at the page id, so a later recording that lands on the same
menu item resolves to the same page object.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from flowscribe.exceptions import ConfigurationError
from flowscribe.models.pages import PageIdentity
from flowscribe.storage.bundle_writer import atomic_write_text

logger = logging.getLogger(__name__)

ALIAS_PREFIX = "mi:"


class PageRegistry:
    """
    JSON-backed registry of page identities.
    
    Example:
        >>> registry = PageRegistry.load("generated/.flowscribe/pages.json")
        >>> registry.register(identity, class_name="SalesPage")
        >>> registry.save()
    """
    
    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path else None
        self._entries: Dict[str, Dict[str, Any]] = {}
    
    @classmethod
    def load(cls, path: Union[str, Path]) -> "PageRegistry":
        """
        Load a registry file; a missing file gives an empty registry.
        
        Raises:
            ConfigurationError: if the file is not a JSON object
        """
        registry = cls(path)
        file = Path(path)
        if not file.exists():
            return registry
        try:
            data = json.loads(file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Invalid page registry {file}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Page registry {file} must be a JSON object")
        registry._entries = data
        logger.debug(f"Loaded {len(registry.page_ids())} pages from {file}")
        return registry
    
    def save(self, path: Optional[Union[str, Path]] = None) -> None:
        target = Path(path) if path else self._path
        if target is None:
            raise ConfigurationError("Page registry has no file path")
        atomic_write_text(target, self.to_json())
    
    def to_json(self) -> str:
        """Serialized file content, as save() writes it."""
        return json.dumps(self._entries, indent=2, sort_keys=True) + "\n"
    
    def register(
        self,
        identity: PageIdentity,
        class_name: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Add or update a page.
        
        Existing class names and file paths are kept unless new ones are given.
        
        Returns:
            The stored entry
        """
        entry = dict(self._entries.get(identity.page_id, {}))
        entry.update(identity.to_dict())
        if class_name:
            entry["className"] = class_name
        if file_path:
            entry["filePath"] = file_path
        self._entries[identity.page_id] = entry
        if identity.menu_ref:
            self._entries[ALIAS_PREFIX + identity.menu_ref] = {"pageId": identity.page_id}
        return entry
    
    def get(self, page_id: str) -> Optional[Dict[str, Any]]:
        if page_id.startswith(ALIAS_PREFIX):
            return None
        return self._entries.get(page_id)
    
    def find_by_menu_ref(self, menu_ref: str) -> Optional[Dict[str, Any]]:
        alias = self._entries.get(ALIAS_PREFIX + menu_ref)
        if not alias:
            return None
        return self._entries.get(alias["pageId"])
    
    def identity(self, page_id: str) -> Optional[PageIdentity]:
        entry = self.get(page_id)
        return PageIdentity.from_dict(entry) if entry else None
    
    def page_ids(self) -> List[str]:
        return sorted(k for k in self._entries if not k.startswith(ALIAS_PREFIX))
    
    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return dict(self._entries)
    
    def __contains__(self, page_id: str) -> bool:
        return self.get(page_id) is not None
    
    def __len__(self) -> int:
        return len(self.page_ids())
