# Soundex - Phonetic code back-fill and indexing
from ingestion.soundex.field_path_extractor import extract_values, get_field
from ingestion.soundex.code_builder import SoundexArrayBuilder
from ingestion.soundex.backfill_pipeline import BackfillAbortedError, BackfillPipeline
from ingestion.soundex.index_manager import IndexManager, IndexResult

__all__ = [
    "extract_values",
    "get_field",
    "SoundexArrayBuilder",
    "BackfillAbortedError",
    "BackfillPipeline",
    "IndexManager",
    "IndexResult",
]
