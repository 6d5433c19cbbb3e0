"""Backfill Pipeline - Cursor-driven phonetic code back-fill.

This module provides the BackfillPipeline class that scans a whole
collection, computes each document's phonetic CodeSet and applies the
results as batched set-union updates, retrying rejected batches with
bounded, increasing backoff.

Design Principles:
    - Bounded Memory: One cursor batch and one update batch in flight
    - Idempotent: Updates only add missing codes, so re-running converges
    - Backpressure Aware: Rejected batches are retried, never silently dropped
    - Accountable: Every pass returns a BackfillReport; failed batches are listed

Example:
    >>> from ingestion.soundex import BackfillPipeline, SoundexArrayBuilder
    >>>
    >>> pipeline = BackfillPipeline(
    ...     store=store,
    ...     builder=SoundexArrayBuilder([FieldPath.parse("name.name")]),
    ... )
    >>> report = pipeline.run()
    >>> report.complete
    True
"""

import time
from datetime import datetime
from typing import Callable

from core.settings import Settings
from core.trace.trace_context import TraceContext
from core.types import BackfillReport, SubmitOutcome, UpdateRequest, parse_field_paths
from ingestion.soundex.code_builder import SoundexArrayBuilder
from libs.document_store.base_document_store import (
    BaseDocumentStore,
    DocumentStoreError,
    DocumentStoreWriteError,
)
from observability.logger import get_logger

logger = get_logger(__name__)

NO_PROGRESS_MADE = 82

_MISSING = object()


class BackfillAbortedError(Exception):
    """Raised when the collection scan fails and stops a back-fill pass.

    Attributes:
        report: Counters collected up to the failure
    """

    def __init__(self, message: str, report: BackfillReport) -> None:
        super().__init__(message)
        self.report = report


class BackfillPipeline:
    """Scan-and-update pipeline for the phonetic code array.

    Attributes:
        batch_size: Update requests per bulk write (and cursor batch size)
        max_attempts: Bulk-write attempts per batch before it is abandoned
        base_delay_ms: Backoff unit; the wait after attempt N is N units
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        builder: SoundexArrayBuilder,
        array_field: str = "soundex",
        batch_size: int = 100,
        max_await_time_ms: int = 5000,
        max_attempts: int = 10,
        base_delay_ms: int = 50,
        backpressure_code: int = NO_PROGRESS_MADE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the BackfillPipeline.

        Args:
            store: Document store bound to the target collection.
            builder: Computes the CodeSet of each document.
            array_field: Field receiving the codes.
            batch_size: Update requests per bulk write.
            max_await_time_ms: Await bound handed to the store cursor.
            max_attempts: Attempts per batch before giving up.
            base_delay_ms: Backoff unit in milliseconds.
            backpressure_code: Store error code signalling "no progress".
            sleep: Wait function, in seconds.
        """
        for name, value in (
            ("batch_size", batch_size),
            ("max_await_time_ms", max_await_time_ms),
            ("max_attempts", max_attempts),
            ("base_delay_ms", base_delay_ms),
        ):
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")

        self._store = store
        self._builder = builder
        self._array_field = array_field
        self._batch_size = batch_size
        self._max_await_time_ms = max_await_time_ms
        self._max_attempts = max_attempts
        self._base_delay_ms = base_delay_ms
        self._backpressure_code = backpressure_code
        self._sleep = sleep

        logger.info(
            f"BackfillPipeline initialized: array_field={array_field}, "
            f"batch_size={batch_size}, max_attempts={max_attempts}, "
            f"base_delay_ms={base_delay_ms}"
        )

    @classmethod
    def from_settings(
        cls,
        store: BaseDocumentStore,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "BackfillPipeline":
        """Build a pipeline from the soundex and backfill settings sections.

        Raises:
            FieldPathError: If a configured field path is malformed.
        """
        builder = SoundexArrayBuilder(parse_field_paths(settings.soundex.fields))
        backfill = settings.backfill
        return cls(
            store=store,
            builder=builder,
            array_field=settings.soundex.array_field,
            batch_size=backfill.batch_size,
            max_await_time_ms=backfill.max_await_time_ms,
            max_attempts=backfill.max_attempts,
            base_delay_ms=backfill.base_delay_ms,
            backpressure_code=backfill.backpressure_code,
            sleep=sleep,
        )

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        return self._base_delay_ms * attempt / 1000.0

    def run(self, trace: TraceContext | None = None) -> BackfillReport:
        """Back-fill phonetic codes for every document in the collection.

        Args:
            trace: Optional trace context for observability.

        Returns:
            BackfillReport for the pass. `complete` is False when some batch
            was abandoned, either after exhausting its attempts or on a
            non-retryable store error.

        Raises:
            BackfillAbortedError: If the collection scan fails. The report
                attached to it lists the requests that were pending at that
                point as failed. Fatal submission errors only fail their own
                batch and the pass goes on.
        """
        report = BackfillReport()
        start_time = time.perf_counter()
        batch: list[UpdateRequest] = []

        logger.info("============= BEGIN BUILDING SOUNDEX VALUES ==============")
        logger.info(
            f"Building '{self._array_field}' codes for fields: "
            f"{[str(p) for p in self._builder.field_paths]}"
        )
        if trace:
            trace.record_stage(
                "backfill_start",
                {
                    "array_field": self._array_field,
                    "field_paths": [str(p) for p in self._builder.field_paths],
                    "batch_size": self._batch_size,
                },
            )

        try:
            documents = self._store.scan(
                batch_size=self._batch_size,
                max_await_time_ms=self._max_await_time_ms,
            )
            for document in documents:
                report.documents_scanned += 1
                request = self._build_request(document)
                if request is None:
                    report.documents_skipped += 1
                    continue

                batch.append(request)
                report.update_requests += 1
                if len(batch) >= self._batch_size:
                    self._flush(batch, report, trace)

            if batch:
                self._flush(batch, report, trace)

        except DocumentStoreError as e:
            if batch:
                report.batches_failed += 1
                report.failed_document_ids.extend(r.document_id for r in batch)
                batch.clear()
            report.duration_seconds = time.perf_counter() - start_time
            logger.exception(
                f"Backfill aborted after {report.documents_scanned} documents: {e}"
            )
            if trace:
                trace.record_stage("backfill_aborted", report.to_dict())
            raise BackfillAbortedError(f"Backfill aborted: {e}", report) from e

        report.duration_seconds = time.perf_counter() - start_time

        logger.info(
            f"End time: {datetime.now()} "
            f"Duration: {report.duration_seconds * 1000:.0f}ms "
            f"(scanned={report.documents_scanned}, "
            f"requests={report.update_requests}, "
            f"skipped={report.documents_skipped}, "
            f"batches={report.batches_submitted}, "
            f"failed_batches={report.batches_failed})"
        )
        if not report.complete:
            logger.warning(
                f"Backfill incomplete: {report.batches_failed} batch(es) abandoned, "
                f"{len(report.failed_document_ids)} document(s) not updated; "
                f"re-run to converge"
            )
        logger.info("=============== FINISHED =================")
        if trace:
            trace.record_stage("backfill_complete", report.to_dict())

        return report

    def submit(self, batch: list[UpdateRequest]) -> SubmitOutcome:
        """Submit one batch, retrying rejected writes with increasing backoff.

        Backpressure ("no progress") and other rejected bulk writes are
        retried up to max_attempts times, waiting base_delay_ms * N after the
        Nth failure. No wait follows the final attempt. Any other store error
        fails the batch at once, without retrying.

        Args:
            batch: Update requests to apply.

        Returns:
            SubmitOutcome; `success` is False once attempts are exhausted or
            after a non-retryable store error.
        """
        if not batch:
            return SubmitOutcome(success=True, attempts=0)

        last_error: DocumentStoreWriteError | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                self._store.bulk_add_to_set(self._array_field, batch)
                return SubmitOutcome(success=True, attempts=attempt)
            except DocumentStoreWriteError as e:
                last_error = e
                if e.code == self._backpressure_code:
                    logger.warning(
                        f"No progress made submitting ops "
                        f"(attempt {attempt}/{self._max_attempts})"
                    )
                else:
                    logger.warning(
                        f"Bulk write error (attempt {attempt}/{self._max_attempts}): {e}"
                    )
            except DocumentStoreError as e:
                logger.exception(
                    f"Bulk write failed, abandoning batch of {len(batch)} requests: {e}"
                )
                return SubmitOutcome(success=False, attempts=attempt, error=e)

            if attempt < self._max_attempts:
                self._sleep(self.backoff_delay(attempt))

        logger.error(
            f"Exceeded {self._max_attempts} tries to submit bulk writes "
            f"({len(batch)} requests)"
        )
        return SubmitOutcome(
            success=False, attempts=self._max_attempts, error=last_error
        )

    def _build_request(self, document) -> UpdateRequest | None:
        codes = self._builder.build_codes(document)
        if not codes:
            return None
        document_id = document.get("_id", _MISSING)
        if document_id is _MISSING:
            logger.warning("Skipping document without _id")
            return None
        return UpdateRequest(document_id=document_id, codes=tuple(codes))

    def _flush(
        self,
        batch: list[UpdateRequest],
        report: BackfillReport,
        trace: TraceContext | None,
    ) -> None:
        batch_start_time = time.perf_counter()
        outcome = self.submit(batch)
        batch_duration = time.perf_counter() - batch_start_time
        report.retries += outcome.retries

        if outcome.success:
            report.batches_submitted += 1
            logger.info(
                f"Batch {report.batches_submitted} submitted: {len(batch)} requests "
                f"in {batch_duration:.3f}s (attempts={outcome.attempts})"
            )
            stage = "batch_submitted"
        else:
            # Abandoned after exhausting retries or a fatal error; ids are kept on the report
            report.batches_failed += 1
            report.failed_document_ids.extend(r.document_id for r in batch)
            stage = "batch_failed"

        if trace:
            trace.record_stage(
                stage,
                {
                    "request_count": len(batch),
                    "attempts": outcome.attempts,
                    "duration_seconds": batch_duration,
                },
            )
        batch.clear()

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"BackfillPipeline("
            f"array_field={self._array_field}, "
            f"batch_size={self._batch_size}, "
            f"max_attempts={self._max_attempts}, "
            f"base_delay_ms={self._base_delay_ms})"
        )
