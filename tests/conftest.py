"""
Pytest configuration and shared fixtures for the Fuzzy Search test suite.

This module provides common fixtures used across unit and integration tests,
including an in-memory document store with $addToSet / $in semantics.
"""

import copy
import sys
from pathlib import Path
from typing import Any, Iterator

import pytest

# Add the project root and src directories to the Python path
PROJECT_ROOT = Path(__file__).parent.parent
SRC_ROOT = PROJECT_ROOT / "src"

for path in [str(SRC_ROOT), str(PROJECT_ROOT)]:
    if path not in sys.path:
        sys.path.insert(0, path)

from core.types import UpdateRequest  # noqa: E402
from libs.document_store.base_document_store import (  # noqa: E402
    BaseDocumentStore,
    BulkWriteSummary,
    IndexConflictError,
)


class FakeDocumentStore(BaseDocumentStore):
    """In-memory document store for testing.

    Documents are keyed by _id. Bulk writes apply set-union semantics; queued
    `write_failures` are raised by successive bulk writes (None entries let
    that attempt succeed).
    """

    def __init__(
        self,
        documents: list[dict[str, Any]] | None = None,
        write_failures: list[Exception | None] | None = None,
        **kwargs: Any
    ) -> None:
        self.documents: dict[Any, dict[str, Any]] = {
            d["_id"]: copy.deepcopy(d) for d in documents or []
        }
        self.indexes: dict[str, str] = {"_id_": "_id"}
        self.write_failures = list(write_failures or [])
        self.bulk_calls: list[int] = []
        self.scan_args: tuple[int, int] | None = None
        self.find_calls: list[tuple[str, list[str]]] = []
        self.ping_count = 0
        self.closed = False
        self.init_kwargs = kwargs

    @property
    def provider_name(self) -> str:
        return "fake"

    def ping(self) -> None:
        self.ping_count += 1

    def scan(
        self,
        batch_size: int = 100,
        max_await_time_ms: int = 5000,
    ) -> Iterator[dict[str, Any]]:
        self.scan_args = (batch_size, max_await_time_ms)
        for document in list(self.documents.values()):
            yield copy.deepcopy(document)

    def bulk_add_to_set(
        self,
        field: str,
        requests: list[UpdateRequest],
    ) -> BulkWriteSummary:
        self.bulk_calls.append(len(requests))
        if self.write_failures:
            failure = self.write_failures.pop(0)
            if failure is not None:
                raise failure

        matched = modified = 0
        for request in requests:
            document = self.documents.get(request.document_id)
            if document is None:
                continue
            matched += 1
            stored = document.setdefault(field, [])
            before = len(stored)
            for code in request.codes:
                if code not in stored:
                    stored.append(code)
            modified += int(len(stored) != before)
        return BulkWriteSummary(matched_count=matched, modified_count=modified)

    def create_index(self, field: str, name: str) -> str:
        existing = self.indexes.get(name)
        if existing is not None and existing != field:
            raise IndexConflictError(
                f"Index '{name}' already exists on '{existing}'",
                provider=self.provider_name,
                code=86,
            )
        self.indexes[name] = field
        return name

    def index_names(self) -> list[str]:
        return list(self.indexes)

    def find_in(self, field: str, values: list[str]) -> Iterator[dict[str, Any]]:
        self.find_calls.append((field, list(values)))
        for document in self.documents.values():
            stored = document.get(field)
            if isinstance(stored, list) and any(v in stored for v in values):
                yield copy.deepcopy(document)

    def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Return the path to the config directory."""
    return project_root / "config"


@pytest.fixture
def make_store() -> type[FakeDocumentStore]:
    """Return the in-memory store class; call it with documents to build one."""
    return FakeDocumentStore


@pytest.fixture
def people_documents() -> list[dict[str, Any]]:
    """Small collection with nested name arrays."""
    return [
        {"_id": 1, "name": [{"name": "Smith", "firstName": "John"}]},
        {"_id": 2, "name": [{"name": "Ashcraft", "firstName": "Robert"}]},
        {"_id": 3, "name": [{"name": "Smyth Smith", "firstName": "Jon"}]},
        {"_id": 4, "title": "no names here"},
    ]
