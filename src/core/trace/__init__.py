"""Core Trace - Pipeline observability and tracing.

This module provides trace context for tracking back-fill, index and search
stages of a run.
"""

from core.trace.trace_context import TraceContext

__all__ = ["TraceContext"]
