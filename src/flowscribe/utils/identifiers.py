"""
Identifier helpers.

Turns free-form UI labels into safe Python identifiers and class names.
ERP labels carry hotkey hints like ``New (Alt+N)`` and icon glyphs from a
private-use font; both are stripped before anything else.
"""

import re

_HOTKEY_HINT = re.compile(r"\(\s*alt\+[\w\s]+\s*\)", re.IGNORECASE)
_WEIRD_GLYPHS = re.compile("[\ue000-\uf8ff\u200b-\u200d\ufeff]")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")

PATTERN_SUFFIXES = {
    "ListPage": "ListPage",
    "SimpleList": "ListPage",
    "Workspace": "Workspace",
    "Dialog": "Dialog",
}


def strip_hotkey_hints(text: str) -> str:
    """Remove ``(Alt+X)`` style hints."""
    return _HOTKEY_HINT.sub("", text).strip()


def strip_weird_glyphs(text: str) -> str:
    """Remove private-use icon glyphs and zero-width characters."""
    return _WEIRD_GLYPHS.sub("", text).strip()


def clean_label(text: str) -> str:
    return strip_weird_glyphs(strip_hotkey_hints(text or ""))


def _words(text: str) -> list[str]:
    return [w for w in _NON_ALNUM.split(clean_label(text)) if w]


def to_pascal_case(text: str) -> str:
    """
    Convert text to PascalCase.
    
    Words already in mixed case keep their inner capitals, so
    ``SalesTable`` stays ``SalesTable``.
    
    Returns:
        The PascalCase string, or ``"Unnamed"`` if nothing is left
    """
    words = _words(text)
    if not words:
        return "Unnamed"
    return "".join(w[0].upper() + w[1:] for w in words)


def to_camel_case(text: str) -> str:
    """Convert text to camelCase."""
    pascal = to_pascal_case(text)
    return pascal[0].lower() + pascal[1:]


def make_safe_identifier(text: str) -> str:
    """
    Build a camelCase identifier that is always valid Python.
    
    Examples:
        >>> make_safe_identifier("New (Alt+N)")
        'new'
        >>> make_safe_identifier("2nd address")
        '_2ndAddress'
    """
    words = _words(text)
    if not words:
        return "unnamed"
    ident = to_camel_case(" ".join(words))
    if ident[0].isdigit():
        ident = "_" + ident
    return ident


def to_snake_case(text: str) -> str:
    """Convert PascalCase or free text to snake_case (for file and module names)."""
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", clean_label(text))
    words = _words(spaced)
    if not words:
        return "unnamed"
    name = "_".join(w.lower() for w in words)
    if name[0].isdigit():
        name = "_" + name
    return name


def make_page_class_name(caption: str, pattern: str) -> str:
    """
    Build a page-object class name from a caption and a page pattern.
    
    ``("All sales orders", "ListPage")`` becomes ``AllSalesOrdersListPage``.
    A caption that already ends in the suffix is not suffixed twice.
    """
    base = to_pascal_case(caption)
    suffix = PATTERN_SUFFIXES.get(pattern, "Page")
    if base.endswith(suffix):
        return base
    if suffix == "ListPage" and base.endswith("List"):
        return base + "Page"
    return base + suffix
