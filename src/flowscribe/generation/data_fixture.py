"""
Data fixtures for parametrized tests.

A fixture is a JSON list of rows. Each row is one test case: a
``testCaseId`` plus one column per parameter. Regeneration never loses
data the user typed in: existing rows and values are kept and only new
columns are added, empty.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from flowscribe.exceptions import CompilationError

CASE_ID_KEY = "testCaseId"
DEFAULT_CASE_ID = "test-1"


def default_rows(parameters: Sequence[str]) -> List[Dict[str, Any]]:
    row: Dict[str, Any] = {CASE_ID_KEY: DEFAULT_CASE_ID}
    row.update({name: "" for name in parameters})
    return [row]


def merge_rows(
    parameters: Sequence[str],
    existing: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """
    Merge parameter columns into existing rows.
    
    Args:
        parameters: Column names the script reads
        existing: Rows already on disk
        
    Returns:
        New row list; never empty
    """
    if not existing:
        return default_rows(parameters)
    merged = []
    for index, row in enumerate(existing, start=1):
        updated = dict(row)
        updated.setdefault(CASE_ID_KEY, f"test-{index}")
        for name in parameters:
            updated.setdefault(name, "")
        merged.append(updated)
    return merged


class DataFixture:
    """
    Renders the fixture file of one flow.
    
    Example:
        >>> DataFixture().render(["customerAccount"])
        '[\\n  {\\n    "testCaseId": "test-1",\\n    "customerAccount": ""\\n  }\\n]\\n'
    """
    
    def parse(self, text: str) -> List[Dict[str, Any]]:
        """
        Parse an existing fixture.
        
        Raises:
            CompilationError: if the file is not a JSON list of objects
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise CompilationError(f"Existing data fixture is not valid JSON: {e}") from e
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise CompilationError("Existing data fixture must be a list of objects")
        return data
    
    def render(self, parameters: Sequence[str], existing: Optional[str] = None) -> str:
        rows = merge_rows(parameters, self.parse(existing) if existing else None)
        return json.dumps(rows, indent=2, ensure_ascii=False) + "\n"
