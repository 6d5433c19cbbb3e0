"""MongoDB Document Store implementation.

This module provides the MongoDB-backed document store that follows the
BaseDocumentStore interface, built on pymongo.

Design Principles:
    - pymongo-backed: Uses the official driver for all round-trips
    - Lazy: The client connects on first use; constructing it issues no commands
    - Classified Errors: Driver exceptions are translated into DocumentStoreError types
"""

from typing import Any, Iterator

from pymongo import ASCENDING, MongoClient, UpdateOne
from pymongo.errors import (
    BulkWriteError,
    ConfigurationError,
    OperationFailure,
    PyMongoError,
)
from pymongo.uri_parser import parse_uri

from core.types import Document, UpdateRequest
from libs.document_store.base_document_store import (
    BaseDocumentStore,
    BulkWriteSummary,
    DocumentStoreConfigurationError,
    DocumentStoreError,
    DocumentStoreWriteError,
    IndexConflictError,
)
from observability.logger import get_logger

logger = get_logger(__name__)

# IndexOptionsConflict, IndexKeySpecsConflict
INDEX_CONFLICT_CODES = frozenset({85, 86})


def resolve_database_name(uri: str, fallback: str | None = None) -> str:
    """Pick the database named in the connection string, else the fallback.

    Args:
        uri: MongoDB connection string
        fallback: Database name to use when the URI has no path component

    Returns:
        Database name

    Raises:
        DocumentStoreConfigurationError: If the URI is invalid or no database
            name can be resolved
    """
    try:
        uri_database = parse_uri(uri).get("database")
    except ConfigurationError as e:
        raise DocumentStoreConfigurationError(
            f"Invalid connection string: {e}", provider="mongodb"
        ) from e

    name = uri_database or fallback
    if not name:
        raise DocumentStoreConfigurationError(
            "A database name is required in either the connection string "
            "or the store.database setting",
            provider="mongodb",
        )
    return name


def _bulk_error_code(error: BulkWriteError) -> int | None:
    """First error code reported inside a bulk write failure."""
    details = error.details or {}
    for key in ("writeErrors", "writeConcernErrors"):
        for entry in details.get(key) or []:
            code = entry.get("code")
            if code is not None:
                return code
    return error.code


class MongoDocumentStore(BaseDocumentStore):
    """MongoDB-backed Document Store.

    Attributes:
        database_name: Resolved database name
        collection_name: Name of the collection
    """

    DEFAULT_URI = "mongodb://localhost:27017/"

    def __init__(
        self,
        uri: str | None = None,
        collection_name: str | None = None,
        database: str | None = None,
        server_selection_timeout_ms: int = 30000,
        socket_timeout_ms: int | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the MongoDocumentStore.

        The database name is resolved before any client is created, so a
        configuration error never reaches the server.

        Args:
            uri: Connection string.
            collection_name: Collection to operate on.
            database: Database name used when the URI does not name one.
            server_selection_timeout_ms: Bound on waiting for a server.
            socket_timeout_ms: Bound on each network round-trip, cursor
                fetches included; None waits indefinitely.
            client: Pre-built client; mainly for tests.

        Raises:
            DocumentStoreConfigurationError: If no collection or database
                name is available.
        """
        self._uri = uri or self.DEFAULT_URI
        if not collection_name:
            raise DocumentStoreConfigurationError(
                "A collection name is required", provider="mongodb"
            )
        self._database_name = resolve_database_name(self._uri, database)
        self._collection_name = collection_name

        self._client = client or MongoClient(
            self._uri,
            serverSelectionTimeoutMS=server_selection_timeout_ms,
            socketTimeoutMS=socket_timeout_ms,
        )
        self._database = self._client[self._database_name]
        self._collection = self._database[self._collection_name]

    @property
    def provider_name(self) -> str:
        return "mongodb"

    @property
    def database_name(self) -> str:
        return self._database_name

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def ping(self) -> None:
        try:
            self._database.command("ping")
        except PyMongoError as e:
            raise DocumentStoreError(
                f"Ping failed: {e}", provider=self.provider_name
            ) from e

    def scan(
        self,
        batch_size: int = 100,
        max_await_time_ms: int = 5000,
    ) -> Iterator[Document]:
        logger.debug(
            f"MongoDocumentStore scan: collection={self._collection_name}, "
            f"batch_size={batch_size}, max_await_time_ms={max_await_time_ms}"
        )
        try:
            cursor = self._collection.find({}, batch_size=batch_size)
            cursor.max_await_time(max_await_time_ms)
            with cursor:
                yield from cursor
        except PyMongoError as e:
            raise DocumentStoreError(
                f"Collection scan failed: {e}",
                provider=self.provider_name,
                code=getattr(e, "code", None),
            ) from e

    def bulk_add_to_set(
        self,
        field: str,
        requests: list[UpdateRequest],
    ) -> BulkWriteSummary:
        if not requests:
            return BulkWriteSummary()

        operations = [
            UpdateOne(
                {"_id": request.document_id},
                {"$addToSet": {field: {"$each": list(request.codes)}}},
            )
            for request in requests
        ]

        try:
            result = self._collection.bulk_write(operations)
        except BulkWriteError as e:
            details = e.details or {}
            raise DocumentStoreWriteError(
                f"Bulk write rejected: {e}",
                provider=self.provider_name,
                code=_bulk_error_code(e),
                details={
                    "n_modified": details.get("nModified", 0),
                    "write_errors": len(details.get("writeErrors") or []),
                },
            ) from e
        except PyMongoError as e:
            raise DocumentStoreError(
                f"Bulk write failed: {e}",
                provider=self.provider_name,
                code=getattr(e, "code", None),
            ) from e

        return BulkWriteSummary(
            matched_count=result.matched_count,
            modified_count=result.modified_count,
        )

    def create_index(self, field: str, name: str) -> str:
        try:
            return self._collection.create_index([(field, ASCENDING)], name=name)
        except OperationFailure as e:
            if e.code in INDEX_CONFLICT_CODES:
                raise IndexConflictError(
                    f"Index '{name}' conflicts with an existing index: {e}",
                    provider=self.provider_name,
                    code=e.code,
                ) from e
            raise DocumentStoreError(
                f"Index creation failed: {e}",
                provider=self.provider_name,
                code=e.code,
            ) from e
        except PyMongoError as e:
            raise DocumentStoreError(
                f"Index creation failed: {e}", provider=self.provider_name
            ) from e

    def index_names(self) -> list[str]:
        try:
            return list(self._collection.index_information().keys())
        except PyMongoError as e:
            raise DocumentStoreError(
                f"Listing indexes failed: {e}", provider=self.provider_name
            ) from e

    def find_in(self, field: str, values: list[str]) -> Iterator[Document]:
        try:
            cursor = self._collection.find({field: {"$in": values}})
            with cursor:
                yield from cursor
        except PyMongoError as e:
            raise DocumentStoreError(
                f"Query failed: {e}",
                provider=self.provider_name,
                code=getattr(e, "code", None),
            ) from e

    def close(self) -> None:
        self._client.close()

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"MongoDocumentStore("
            f"database={self._database_name}, "
            f"collection={self._collection_name})"
        )
