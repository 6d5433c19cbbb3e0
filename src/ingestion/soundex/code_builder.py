"""Soundex Array Builder - Per-document phonetic code computation.

This module computes the CodeSet of a document: the distinct Soundex codes
of every whitespace-separated token found along the configured field paths.

Design Principles:
    - Deterministic Order: field-path order, then array order, then token order
    - Set Semantics: empty codes and duplicates never enter a CodeSet
    - Fail-Soft: a failing field path is logged and skipped, others still count

Example:
    >>> builder = SoundexArrayBuilder([FieldPath.parse("name.name")])
    >>> builder.build_codes({"name": [{"name": "Smith Smyth"}]})
    ['S530']
"""

from typing import Callable

from core.types import CodeSet, Document, FieldPath
from ingestion.soundex.field_path_extractor import extract_values
from libs.phonetic import encode
from observability.logger import get_logger

logger = get_logger(__name__)


class SoundexArrayBuilder:
    """Builds the phonetic code set for a document.

    Attributes:
        field_paths: Configured paths, in evaluation order
    """

    def __init__(
        self,
        field_paths: list[FieldPath],
        encoder: Callable[[str], str] = encode,
    ) -> None:
        """Initialize the builder.

        Args:
            field_paths: Paths to read values from.
            encoder: Token encoder; Soundex by default.
        """
        self._field_paths = list(field_paths)
        self._encoder = encoder

    @property
    def field_paths(self) -> list[FieldPath]:
        return list(self._field_paths)

    def build_codes(self, document: Document) -> CodeSet:
        """Compute the distinct codes for one document.

        Args:
            document: Document as returned by the store.

        Returns:
            Ordered list of distinct, non-empty codes; empty when no
            configured path yields any value.
        """
        codes: CodeSet = []
        for field_path in self._field_paths:
            try:
                self._accumulate(document, field_path, codes)
            except Exception as e:
                logger.warning(
                    f"Skipping field '{field_path}' for document "
                    f"{document.get('_id')!r}: {e}"
                )
        return codes

    def _accumulate(self, document: Document, field_path: FieldPath, codes: CodeSet) -> None:
        for value in extract_values(document, field_path):
            for token in value.split():
                code = self._encoder(token)
                # Linear membership check; code sets are small
                if code and code not in codes:
                    codes.append(code)

    def __repr__(self) -> str:
        """Return string representation."""
        paths = ", ".join(str(p) for p in self._field_paths)
        return f"SoundexArrayBuilder(field_paths=[{paths}])"
