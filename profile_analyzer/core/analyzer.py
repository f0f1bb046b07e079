"""
Main profile analyzer orchestrator.
"""

import os
from typing import Any, Iterable, Optional, Union

import ijson

from ..core.errors import ProfilerAnalysisError
from ..core.events import TraceEvent
from ..core.types import (
    AllocationCallTreeResult,
    ContentionProfileResult,
    CpuProfileResult,
    EmptyProfile,
    ExceptionProfileResult,
    ProfileConfig,
)
from ..formatters import format_bytes, format_time
from ..processors import (
    AllocationProcessor,
    ContentionProcessor,
    CpuSampleProcessor,
    ExceptionProcessor,
    RuntimeEventProcessor,
    SpeedscopeFileProcessor,
    SpeedscopeParser,
    TraceEventFileProcessor,
)

# Errors raised while decoding an input, reported as ProfilerAnalysisError
DECODE_ERRORS = (ijson.JSONError, ValueError, TypeError, OSError)

PROFILE_KINDS = ('speedscope', 'cpu', 'allocation', 'exception', 'contention')

EventSource = Union[str, Iterable[TraceEvent]]


class ProfileAnalyzer:
    """Main orchestrator for profile analysis."""

    def __init__(self, config: Optional[ProfileConfig] = None):
        """
        Initialize the ProfileAnalyzer.

        Args:
            config: Query configuration used by callers rendering the results;
                    defaults to ProfileConfig()
        """
        self.config = config or ProfileConfig()

    def analyze(self, source: EventSource, kind: str):
        """
        Run the analysis matching a profile kind.

        Args:
            source: File path, or decoded events for the runtime-trace kinds
            kind: One of PROFILE_KINDS

        Returns:
            The result of the matching analyze_* method

        Raises:
            ValueError: If the kind is unknown
        """
        if kind == 'speedscope':
            return self.analyze_speedscope(source)
        if kind == 'cpu':
            return self.analyze_cpu_trace(source)
        if kind == 'allocation':
            return self.analyze_allocation_trace(source)
        if kind == 'exception':
            return self.analyze_exception_trace(source)
        if kind == 'contention':
            return self.analyze_contention_trace(source)
        raise ValueError(f"Unknown profile kind: {kind!r} (expected one of {', '.join(PROFILE_KINDS)})")

    def analyze_speedscope(self, file_path: str) -> Optional[CpuProfileResult]:
        """
        Analyze a speedscope export.

        Args:
            file_path: Path to the speedscope JSON file

        Returns:
            CpuProfileResult, or None when the file holds no usable profile

        Raises:
            FileNotFoundError: If the file does not exist
            ProfilerAnalysisError: If the file cannot be decoded
        """
        self._ensure_exists(file_path)

        try:
            result = SpeedscopeFileProcessor.process_file(file_path)
        except DECODE_ERRORS as exc:
            raise ProfilerAnalysisError(f"Speedscope parse failed: {exc}", exc) from exc

        if result is None:
            print("No usable speedscope profile found.")
        else:
            self._report_cpu(result)
        return result

    def analyze_speedscope_document(self, document: Any, source_path: Optional[str] = None) -> Optional[CpuProfileResult]:
        """Analyze an already-parsed speedscope document (None when malformed)."""
        return SpeedscopeParser.parse_document(document, source_path)

    def analyze_cpu_trace(self, source: EventSource) -> Union[CpuProfileResult, EmptyProfile]:
        """
        Analyze CPU samples, with allocation and exception overlays.

        Args:
            source: Path to a trace event dump, or decoded events

        Returns:
            CpuProfileResult, or EmptyProfile when no sample was found

        Raises:
            FileNotFoundError: If the trace file does not exist
            ProfilerAnalysisError: If the trace cannot be decoded
        """
        path = source if isinstance(source, str) else None
        processor = CpuSampleProcessor(source_path=path)
        self._run(processor, source, 'CPU')

        result = processor.build_result()
        if isinstance(result, EmptyProfile):
            print(result.reason)
        else:
            self._report_cpu(result)
        return result

    def analyze_allocation_trace(self, source: EventSource) -> AllocationCallTreeResult:
        """Analyze allocation ticks into per-type allocation trees."""
        processor = AllocationProcessor()
        self._run(processor, source, 'Allocation')

        result = processor.build_result()
        print(f"Found {result.total_count} allocations ({format_bytes(result.total_bytes)}) "
              f"across {len(result.type_roots)} types")
        return result

    def analyze_exception_trace(self, source: EventSource) -> ExceptionProfileResult:
        """Analyze exception throws and catches."""
        processor = ExceptionProcessor()
        self._run(processor, source, 'Exception')

        result = processor.build_result()
        print(f"Found {result.total_thrown} thrown exceptions of {len(result.exception_types)} types, "
              f"{result.total_caught} caught")
        return result

    def analyze_contention_trace(self, source: EventSource) -> ContentionProfileResult:
        """Analyze lock contention waits."""
        processor = ContentionProcessor()
        self._run(processor, source, 'Contention')

        result = processor.build_result()
        print(f"Found {result.total_count} contended waits totaling {format_time(result.total_wait_ms)}")
        return result

    def _run(self, processor: RuntimeEventProcessor, source: EventSource, label: str) -> int:
        """
        Feed a processor from a file path or an in-memory event iterable.

        Raises:
            FileNotFoundError: If `source` is a path that does not exist
            ProfilerAnalysisError: If decoding the events fails
        """
        if isinstance(source, str):
            self._ensure_exists(source)
            events = TraceEventFileProcessor.iter_events(source)
        else:
            events = source

        try:
            return processor.process(events)
        except DECODE_ERRORS as exc:
            raise ProfilerAnalysisError(f"{label} trace parse failed: {exc}", exc) from exc

    @staticmethod
    def _ensure_exists(file_path: str) -> None:
        if not os.path.isfile(file_path):
            raise FileNotFoundError(f"Trace file not found: {file_path}")

    @staticmethod
    def _report_cpu(result: CpuProfileResult) -> None:
        print(f"\nFound {len(result.all_functions)} functions in {result.total_samples} "
              f"{result.count_label.lower()}")
        if result.time_unit_label == 'samples':
            print(f"Call tree total: {result.call_tree_total:,.0f} samples")
        else:
            print(f"Call tree total: {format_time(result.call_tree_total)}")
