"""Field Path Extractor - Read string values along an 'array.leaf' path.

Documents are schema-less, so every field read may miss or find a value of
the wrong type. Reads go through get_field(), which returns None instead of
raising; a miss anywhere along the path just yields fewer values.
"""

from collections.abc import Mapping
from typing import Any, Iterator

from core.types import Document, FieldPath

_MISSING = object()


def get_field(container: Any, name: str, expected: type | tuple[type, ...]) -> Any | None:
    """Read `name` from a mapping if present and of the expected type.

    Args:
        container: Object to read from; non-mappings always miss.
        name: Key to read.
        expected: Type (or tuple of types) the value must have.

    Returns:
        The value, or None on a missing key, a non-mapping container or a
        type mismatch.
    """
    if not isinstance(container, Mapping):
        return None
    value = container.get(name, _MISSING)
    if value is _MISSING or not isinstance(value, expected):
        return None
    return value


def extract_values(document: Document, field_path: FieldPath) -> Iterator[str]:
    """Yield the non-empty string values found along `field_path`.

    The array at `field_path.array_field` is walked in order; elements that
    are not sub-documents, or whose leaf is missing, null, non-string or
    empty, are skipped.

    Example:
        >>> doc = {"name": [{"first": "John"}, {"first": ""}, "x"]}
        >>> list(extract_values(doc, FieldPath("name", "first")))
        ['John']
    """
    elements = get_field(document, field_path.array_field, list)
    if elements is None:
        return

    for element in elements:
        value = get_field(element, field_path.leaf_field, str)
        if value:
            yield value
