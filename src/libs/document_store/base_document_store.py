"""Abstract base class for Document Store providers.

This module defines the BaseDocumentStore interface that the phonetic
pipeline talks to. It covers exactly the round-trips the pipeline needs:
a connectivity check, a full-collection scan, bulk set-union updates,
index creation and set-membership queries.

Providers translate their driver's exceptions into the DocumentStoreError
taxonomy below, so callers classify failures by exception type and `code`
without depending on driver-specific error objects.

Design Principles:
    - Pluggable: All providers implement this interface
    - Lazy: Scans and queries return single-pass iterators
    - Classified Errors: Transient write errors are distinguishable from fatal ones
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator

from core.types import Document, UpdateRequest


@dataclass(frozen=True)
class BulkWriteSummary:
    """Outcome of an applied bulk write.

    Attributes:
        matched_count: Documents matched by the update filters
        modified_count: Documents actually changed
    """

    matched_count: int = 0
    modified_count: int = 0


class BaseDocumentStore(ABC):
    """Abstract base class for document store providers.

    Implementations are bound to a single collection at construction time.
    They may be used as context managers to release client resources.

    Example:
        >>> class MongoDocumentStore(BaseDocumentStore):
        ...     def scan(self, batch_size=100, max_await_time_ms=5000):
        ...         # Implementation here
        ...         pass
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider (e.g., 'mongodb')."""
        ...

    @abstractmethod
    def ping(self) -> None:
        """Check connectivity with a lightweight command.

        Raises:
            DocumentStoreError: If the store cannot be reached
        """
        ...

    @abstractmethod
    def scan(
        self,
        batch_size: int = 100,
        max_await_time_ms: int = 5000,
    ) -> Iterator[Document]:
        """Iterate over every document in the collection.

        Args:
            batch_size: Documents fetched per cursor round-trip
            max_await_time_ms: Await bound handed to the cursor; providers
                whose plain scans ignore it bound fetches through their
                client timeouts instead

        Returns:
            Lazy, single-pass iterator of documents

        Raises:
            DocumentStoreError: If the scan fails
        """
        ...

    @abstractmethod
    def bulk_add_to_set(
        self,
        field: str,
        requests: list[UpdateRequest],
    ) -> BulkWriteSummary:
        """Add each request's codes to `field` of its document, if absent.

        Args:
            field: Array field receiving the codes
            requests: Update requests, one per document

        Returns:
            BulkWriteSummary of the applied write

        Raises:
            DocumentStoreWriteError: If the bulk write was rejected; `code`
                carries the store's error code
            DocumentStoreError: For any other failure
        """
        ...

    @abstractmethod
    def create_index(self, field: str, name: str) -> str:
        """Create a single-field ascending index, idempotently.

        Args:
            field: Field to index
            name: Index name

        Returns:
            Name of the index

        Raises:
            IndexConflictError: If an index with this name exists with a
                different definition
            DocumentStoreError: For any other failure
        """
        ...

    @abstractmethod
    def index_names(self) -> list[str]:
        """Names of the indexes that exist on the collection."""
        ...

    @abstractmethod
    def find_in(self, field: str, values: list[str]) -> Iterator[Document]:
        """Documents whose `field` array contains any of `values`.

        Returns:
            Lazy, single-pass iterator in the store's natural order

        Raises:
            DocumentStoreError: If the query fails
        """
        ...

    def close(self) -> None:
        """Release client resources. No-op by default."""

    def __enter__(self) -> "BaseDocumentStore":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class DocumentStoreError(Exception):
    """Base exception for document store-related errors."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        code: int | None = None,
        details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.code = code
        self.details = details or {}


class DocumentStoreWriteError(DocumentStoreError):
    """Raised when a bulk write is rejected; safe to retry."""

    pass


class IndexConflictError(DocumentStoreError):
    """Raised when an index name is taken by a different definition."""

    pass


class UnknownDocumentStoreProviderError(DocumentStoreError):
    """Raised when an unknown document store provider is specified."""

    pass


class DocumentStoreConfigurationError(DocumentStoreError):
    """Raised when document store configuration is invalid."""

    pass
