# Document Store - Document database interfaces

from libs.document_store.base_document_store import (
    BaseDocumentStore,
    BulkWriteSummary,
    DocumentStoreError,
    DocumentStoreWriteError,
    DocumentStoreConfigurationError,
    IndexConflictError,
    UnknownDocumentStoreProviderError,
)
from libs.document_store.document_store_factory import DocumentStoreFactory
from libs.document_store.mongo_store import (
    MongoDocumentStore,
    resolve_database_name,
)

__all__ = [
    # Base
    "BaseDocumentStore",
    "BulkWriteSummary",
    "DocumentStoreError",
    "DocumentStoreWriteError",
    "DocumentStoreConfigurationError",
    "IndexConflictError",
    "UnknownDocumentStoreProviderError",
    # Factory
    "DocumentStoreFactory",
    # Implementations
    "MongoDocumentStore",
    "resolve_database_name",
]
