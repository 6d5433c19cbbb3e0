"""Search Executor - Phonetic set-membership search.

Each predicate is encoded with Soundex and the store is asked for documents
whose code array contains any of the resulting codes. Results are returned
as the store's lazy cursor, in the store's natural order.

Design Principles:
    - Single Query: one $in-style request per search
    - Lazy: documents are streamed, never collected
    - Independent: works on any collection that has been back-filled

Example:
    >>> executor = SearchExecutor(store, array_field="soundex")
    >>> for document in executor.search(["Jon"]):
    ...     print(document["_id"])
"""

from typing import Callable, Iterator

from core.settings import Settings
from core.trace.trace_context import TraceContext
from core.types import Document
from libs.document_store.base_document_store import BaseDocumentStore
from libs.phonetic import encode
from observability.logger import get_logger

logger = get_logger(__name__)


class SearchExecutor:
    """Runs phonetic searches against the stored code array."""

    def __init__(
        self,
        store: BaseDocumentStore,
        array_field: str = "soundex",
        encoder: Callable[[str], str] = encode,
    ) -> None:
        self._store = store
        self._array_field = array_field
        self._encoder = encoder

    @classmethod
    def from_settings(cls, store: BaseDocumentStore, settings: Settings) -> "SearchExecutor":
        return cls(store, array_field=settings.soundex.array_field)

    def encode_predicates(self, predicates: list[str]) -> list[str]:
        """Encode predicates, dropping those without phonetic content.

        Duplicates are kept; the query is a membership test.
        """
        return [code for code in (self._encoder(p) for p in predicates) if code]

    def search(
        self,
        predicates: list[str],
        trace: TraceContext | None = None,
    ) -> Iterator[Document]:
        """Find documents that sound like any of `predicates`.

        Args:
            predicates: Search terms; each is encoded as a whole.
            trace: Optional trace context for observability.

        Returns:
            Lazy, single-pass iterator of matching documents. Empty, without
            querying the store, when no predicate has phonetic content.

        Raises:
            DocumentStoreError: If the query fails while iterating.
        """
        codes = self.encode_predicates(predicates)

        logger.info(f"Querying for predicates: {predicates}")
        logger.info(f"Soundex values: {codes}")

        if trace:
            trace.record_stage(
                "search",
                {"predicates": list(predicates), "codes": list(codes)},
            )

        if not codes:
            logger.warning("No predicate produced a phonetic code; nothing to search")
            return iter(())

        return self._store.find_in(self._array_field, codes)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"SearchExecutor(array_field={self._array_field})"
