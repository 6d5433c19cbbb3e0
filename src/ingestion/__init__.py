# Ingestion Pipeline - Offline phonetic code back-fill
from ingestion.soundex import (
    BackfillAbortedError,
    BackfillPipeline,
    IndexManager,
    SoundexArrayBuilder,
)

__all__ = [
    "BackfillAbortedError",
    "BackfillPipeline",
    "IndexManager",
    "SoundexArrayBuilder",
]
