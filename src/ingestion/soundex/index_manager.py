"""Index Manager - Ensure the phonetic code array is indexed.

The index is a single-field ascending index with a fixed name, so running
the manager repeatedly leaves exactly one index behind. A different index
already holding that name is a fatal configuration problem and surfaces as
IndexConflictError.
"""

import time
from dataclasses import dataclass

from core.settings import Settings
from core.trace.trace_context import TraceContext
from libs.document_store.base_document_store import BaseDocumentStore
from observability.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IndexResult:
    """Outcome of an ensure_index call.

    Attributes:
        name: Index name
        created: False when the index already existed
        duration_seconds: Time spent on the request
    """
    name: str
    created: bool
    duration_seconds: float


class IndexManager:
    """Creates the index backing phonetic searches."""

    def __init__(self, array_field: str = "soundex", index_name: str = "soundexIndex") -> None:
        self._array_field = array_field
        self._index_name = index_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "IndexManager":
        return cls(
            array_field=settings.soundex.array_field,
            index_name=settings.soundex.index_name,
        )

    @property
    def index_name(self) -> str:
        return self._index_name

    def ensure_index(
        self,
        store: BaseDocumentStore,
        trace: TraceContext | None = None,
    ) -> IndexResult:
        """Create the index unless an identical one already exists.

        Raises:
            IndexConflictError: If the name is taken by a different index.
            DocumentStoreError: For any other store failure.
        """
        logger.info("============= BEGIN CREATING INDEXES ==============")
        start_time = time.perf_counter()

        existed = self._index_name in store.index_names()
        name = store.create_index(self._array_field, self._index_name)

        duration = time.perf_counter() - start_time
        if existed:
            logger.info(f"Index '{name}' already present on '{self._array_field}'")
        logger.info(f"Created indexes in: {duration * 1000:.0f} ms")
        logger.info("============= END CREATING INDEXES ==============")

        result = IndexResult(name=name, created=not existed, duration_seconds=duration)
        if trace:
            trace.record_stage(
                "index_build",
                {
                    "index_name": result.name,
                    "created": result.created,
                    "duration_seconds": result.duration_seconds,
                },
            )
        return result

    def __repr__(self) -> str:
        """Return string representation."""
        return f"IndexManager(array_field={self._array_field}, index_name={self._index_name})"
