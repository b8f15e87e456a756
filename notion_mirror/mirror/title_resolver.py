"""Display-name resolution and filesafe conversion for Notion objects.

This module derives the directory name of a mirrored object. Notion keeps a
page's title inside its ``properties`` map (the property whose type is
``title``) while databases carry a top-level ``title`` rich-text array; the
resolver checks both, in that order, and falls back to the object id.
"""

import re
from typing import Any, Dict, Optional

from .models import TitleResult, TitleSource

UNTITLED = "untitled"

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]')


def safe_id(obj: Dict[str, Any]) -> str:
    """Return the object's id with dashes removed.

    Notion accepts ids with or without dashes; the dashless form is the
    identity used for reconciliation and fallback names.

    Raises:
        KeyError: If the record has no ``id``
    """
    return str(obj["id"]).replace("-", "")


def first_plain_text(rich_text: Any) -> Optional[str]:
    """Return the ``plain_text`` of the first fragment of a rich-text array.

    Returns None when the value is not a non-empty list or its first
    fragment carries no ``plain_text``.
    """
    if not isinstance(rich_text, list) or not rich_text:
        return None
    first = rich_text[0]
    if not isinstance(first, dict):
        return None
    text = first.get("plain_text")
    return text if isinstance(text, str) else None


def _is_title_property(prop: Any) -> bool:
    if not isinstance(prop, dict):
        return False
    if "type" in prop:
        return prop["type"] == "title"
    return "title" in prop


def resolve_title(obj: Dict[str, Any]) -> TitleResult:
    """Resolve the display name of a page or database record.

    Resolution order, first match wins:
        1. the first property of type ``title`` in ``properties``
           (iteration order), if its rich text is non-empty
        2. the top-level ``title`` rich-text array
        3. ``untitled-<id>`` built from the dashless id

    Only the first fragment of a rich-text array is used; titles spread
    over several fragments are truncated to their first run.

    Args:
        obj: Raw Notion object record

    Returns:
        TitleResult with the raw title and the field it came from

    Examples:
        >>> resolve_title({"id": "a-1", "properties": {"Name": {
        ...     "type": "title", "title": [{"plain_text": "Alpha"}]}}}).title
        'Alpha'
        >>> resolve_title({"id": "a-1"}).title
        'untitled-a1'
    """
    properties = obj.get("properties")
    if isinstance(properties, dict):
        title_prop = next(
            (prop for prop in properties.values() if _is_title_property(prop)),
            None
        )
        if title_prop is not None:
            text = first_plain_text(title_prop.get("title"))
            if text is not None:
                return TitleResult(text, TitleSource.PROPERTIES_TITLE)

    text = first_plain_text(obj.get("title"))
    if text is not None:
        return TitleResult(text, TitleSource.TOP_LEVEL_TITLE)

    return TitleResult(f"{UNTITLED}-{safe_id(obj)}", TitleSource.FALLBACK)


def sanitize_name(name: Optional[str]) -> str:
    """Convert a display name to a filesafe directory name.

    Every character outside ``[A-Za-z0-9._-]`` becomes ``_``. Case and
    length are preserved. Missing or empty names map to ``untitled``, and
    names made only of dots have each dot replaced so that ``.`` and ``..``
    never point at the mirror root or its parent. Never raises.

    Examples:
        >>> sanitize_name("My Page: v2")
        'My_Page__v2'
        >>> sanitize_name("..")
        '__'
        >>> sanitize_name(None)
        'untitled'
    """
    if not name:
        return UNTITLED
    safe = _UNSAFE_CHARS.sub("_", str(name))
    if not safe.strip("."):
        return "_" * len(safe)
    return safe
