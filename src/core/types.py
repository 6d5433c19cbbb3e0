"""Core data types for the phonetic back-fill and search pipeline.

This module defines the shared data structures used across the whole
system: from field-path configuration through code computation to batched
updates and the per-pass report.

Design Principles:
    - Serializable: All types can be converted to dict/JSON
    - Immutable: Configuration and request types use frozen dataclasses
    - Store Agnostic: Documents stay plain mappings owned by the store
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

# A document as returned by the store cursor. Owned by the store; the
# pipeline only holds per-batch copies.
Document = Mapping[str, Any]

# Distinct phonetic codes for one document, in accumulation order.
CodeSet = list[str]

FIELD_PATH_SEPARATOR = "."


class FieldPathError(ValueError):
    """Raised when a field path string is not of the form 'array.leaf'."""

    pass


@dataclass(frozen=True)
class FieldPath:
    """Path to a string field inside an array of sub-documents.

    Only one level of array nesting is supported: the path names the array
    field on the document and the leaf field read from each element.

    Attributes:
        array_field: Name of the top-level array of sub-documents
        leaf_field: Name of the string field read from each array element
    """
    array_field: str
    leaf_field: str

    @classmethod
    def parse(cls, path: str) -> "FieldPath":
        """Parse a dotted 'array.leaf' string.

        Args:
            path: Dotted field path, e.g. "name.firstName"

        Returns:
            FieldPath instance

        Raises:
            FieldPathError: If the path does not have exactly two
                non-empty segments.

        Example:
            >>> FieldPath.parse("name.firstName")
            FieldPath(array_field='name', leaf_field='firstName')
        """
        segments = (path or "").split(FIELD_PATH_SEPARATOR)
        if len(segments) != 2 or not all(s.strip() for s in segments):
            raise FieldPathError(
                f"Invalid field path '{path}': expected 'arrayField.leafField'"
            )
        return cls(array_field=segments[0].strip(), leaf_field=segments[1].strip())

    def __str__(self) -> str:
        return f"{self.array_field}{FIELD_PATH_SEPARATOR}{self.leaf_field}"


def parse_field_paths(paths: list[str]) -> list[FieldPath]:
    """Parse a list of dotted field paths, keeping configuration order."""
    return [FieldPath.parse(p) for p in paths]


@dataclass(frozen=True)
class UpdateRequest:
    """Set-union update for one document.

    Applying the request adds each code to the document's stored code array
    only if it is not already present, so re-applying it is a no-op.

    Attributes:
        document_id: Value of the document's _id field
        codes: Non-empty, duplicate-free phonetic codes to add
    """
    document_id: Any
    codes: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "document_id": self.document_id,
            "codes": list(self.codes),
        }


@dataclass(frozen=True)
class SubmitOutcome:
    """Result of submitting one batch of update requests.

    Attributes:
        success: Whether the bulk write was eventually applied
        attempts: Number of bulk-write attempts made
        error: The last error seen, if any
    """
    success: bool
    attempts: int
    error: Exception | None = None

    @property
    def retries(self) -> int:
        """Number of attempts beyond the first."""
        return max(self.attempts - 1, 0)


@dataclass
class BackfillReport:
    """Counters collected over a single back-fill pass.

    Attributes:
        documents_scanned: Documents read from the cursor
        update_requests: Documents for which an update request was queued
        documents_skipped: Documents whose code set was empty
        batches_submitted: Batches applied successfully
        batches_failed: Batches abandoned after exhausting retries
        retries: Total retry attempts across all batches
        failed_document_ids: Ids of documents in abandoned batches
        duration_seconds: Wall-clock duration of the pass
    """
    documents_scanned: int = 0
    update_requests: int = 0
    documents_skipped: int = 0
    batches_submitted: int = 0
    batches_failed: int = 0
    retries: int = 0
    failed_document_ids: list[Any] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def complete(self) -> bool:
        """True when every queued update request was applied."""
        return self.batches_failed == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "documents_scanned": self.documents_scanned,
            "update_requests": self.update_requests,
            "documents_skipped": self.documents_skipped,
            "batches_submitted": self.batches_submitted,
            "batches_failed": self.batches_failed,
            "retries": self.retries,
            "failed_document_ids": list(self.failed_document_ids),
            "duration_seconds": self.duration_seconds,
            "complete": self.complete,
        }
