"""
CPU sample processing.

Each sample is weighted by the time elapsed since the previous sample of the
trace. Allocation and exception events are overlaid onto the same tree.
"""

from typing import Optional, Union

from ..core.call_tree import CallTreeNode, MAX_CALLS
from ..core.events import TraceEvent
from ..core.types import CpuProfileResult, EmptyProfile
from ..extractors import PayloadExtractor, StackExtractor
from .allocation_processor import AllocationProcessor
from .event_processor import (
    EXCEPTION_THROW_DYNAMIC_EVENTS,
    EXCEPTION_THROW_EVENT,
    SAMPLE_PROFILER_PROVIDER,
    RuntimeEventProcessor,
    TypedEventLatch,
)
from .tree_builder import CallTreeBuilder


class CpuSampleProcessor(RuntimeEventProcessor):
    """Builds a CPU call tree from sample profiler events."""

    def __init__(self, source_path: Optional[str] = None):
        """
        Initialize the processor.

        Args:
            source_path: Optional trace path recorded on the result
        """
        self.source_path = source_path
        self.call_tree_root = CallTreeNode.create_root()
        self.tree_builder = CallTreeBuilder()
        self.call_tree_total = 0.0
        self.total_samples = 0
        self.last_sample_time_ms: Optional[float] = None

        self.allocation_processor = AllocationProcessor(self.call_tree_root, self.tree_builder)
        self.throw_latch = TypedEventLatch([EXCEPTION_THROW_EVENT], EXCEPTION_THROW_DYNAMIC_EVENTS)

    def handle_event(self, event: TraceEvent) -> bool:
        if event.provider_name == SAMPLE_PROFILER_PROVIDER:
            return self.record_sample(event)

        if not self.is_runtime_event(event):
            return False

        if self.allocation_processor.latch.matches(event.event_name):
            return self.allocation_processor.handle_event(event)

        if self.throw_latch.accept(event.event_name):
            return self.record_exception(event)

        return False

    def record_sample(self, event: TraceEvent) -> bool:
        """
        Merge one CPU sample.

        The weight is the time since the previous sample (0 for the first
        one, clamped at 0 for out-of-order timestamps). Samples without a
        stack are dropped.
        """
        if event.call_stack is None:
            return False

        weight = 0.0
        if self.last_sample_time_ms is not None:
            weight = max(0.0, event.timestamp_ms - self.last_sample_time_ms)
        self.last_sample_time_ms = event.timestamp_ms

        frames = StackExtractor.root_first(StackExtractor.cpu_frames(event.call_stack))

        self.total_samples += 1
        self.call_tree_total += weight

        path = self.tree_builder.merge_path(self.call_tree_root, frames)
        for frame, node in zip(frames, path):
            node.total += weight
            node.add_calls(1)
            self.tree_builder.record_frame(frame, weight)
        path[-1].self_time += weight

        return True

    def record_exception(self, event: TraceEvent) -> bool:
        """Add one thrown exception to every frame of the throwing stack."""
        if event.call_stack is None:
            return False

        type_name = PayloadExtractor.exception_type_name(event)
        frames = StackExtractor.root_first(StackExtractor.cpu_frames(event.call_stack))

        self.call_tree_root.add_exception(type_name, 1)
        for node in self.tree_builder.merge_path(self.call_tree_root, frames):
            node.add_exception(type_name, 1)
        return True

    def build_result(self) -> Union[CpuProfileResult, EmptyProfile]:
        """
        Finalize the root and build the result.

        Returns:
            CpuProfileResult, or EmptyProfile when no sample was observed
        """
        if self.total_samples == 0:
            return EmptyProfile('No CPU samples found in trace.')

        root = self.call_tree_root
        root.total = self.call_tree_total
        root.calls = min(MAX_CALLS, self.total_samples)

        return CpuProfileResult(
            all_functions=self.tree_builder.function_samples(),
            total_time=self.tree_builder.total_time(),
            call_tree_root=root,
            call_tree_total=self.call_tree_total,
            source_path=self.source_path,
            time_unit_label='ms',
            count_label='Samples',
            count_suffix=' samp',
            total_samples=self.total_samples,
        )
