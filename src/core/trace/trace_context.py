"""Trace Context - Stage recording for a single run.

A run (ping, back-fill pass, index build, search) records one entry per
stage. Repeated stages such as per-batch submissions keep the latest data
and bump a counter, so a long pass does not grow the trace unboundedly.
"""

import time
import uuid
from typing import Any


class TraceContext:
    """Trace context for tracking pipeline stages of one run."""

    def __init__(self) -> None:
        """Initialize trace context with a unique trace ID."""
        self._trace_id: str = str(uuid.uuid4())
        self._started_at: float = time.perf_counter()
        self._stages: dict[str, Any] = {}
        self._counts: dict[str, int] = {}

    @property
    def trace_id(self) -> str:
        """Get the unique trace ID for this run."""
        return self._trace_id

    def record_stage(self, stage_name: str, data: dict[str, Any]) -> None:
        """Record data for a pipeline stage.

        Args:
            stage_name: Name of the stage (e.g., "backfill_start", "batch_submitted").
            data: Dictionary of stage data to record.
        """
        self._stages[stage_name] = data
        self._counts[stage_name] = self._counts.get(stage_name, 0) + 1

    def get_stage(self, stage_name: str) -> dict[str, Any] | None:
        """Get the most recent data recorded for a stage.

        Args:
            stage_name: Name of the stage.

        Returns:
            Dictionary of stage data, or None if not recorded.
        """
        return self._stages.get(stage_name)

    def stage_count(self, stage_name: str) -> int:
        """Number of times a stage was recorded."""
        return self._counts.get(stage_name, 0)

    def get_all_stages(self) -> dict[str, dict[str, Any]]:
        """Get all recorded stage data.

        Returns:
            Dictionary of all stage data.
        """
        return dict(self._stages)

    def elapsed_seconds(self) -> float:
        """Seconds since the trace was created."""
        return time.perf_counter() - self._started_at

    def __repr__(self) -> str:
        """String representation of trace context."""
        return f"TraceContext(trace_id={self._trace_id}, stages={list(self._stages.keys())})"
