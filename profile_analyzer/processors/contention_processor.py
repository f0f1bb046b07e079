"""
Lock contention processing.

Wait-start events are paired with the next wait-stop event of the same
traced thread (innermost wait first).
"""

from typing import Dict, List, Optional, Tuple

from ..core.call_tree import CallTreeNode, MAX_CALLS
from ..core.events import StackFrame, TraceEvent
from ..core.types import ContentionProfileResult
from ..extractors import PayloadExtractor, StackExtractor
from .event_processor import (
    CONTENTION_START_DYNAMIC_EVENTS,
    CONTENTION_START_EVENT,
    CONTENTION_STOP_DYNAMIC_EVENTS,
    CONTENTION_STOP_EVENT,
    RuntimeEventProcessor,
    TypedEventLatch,
)
from .tree_builder import CallTreeBuilder


class ContentionProcessor(RuntimeEventProcessor):
    """Builds a lock-wait call tree weighted by wait duration in milliseconds."""

    def __init__(self):
        self.call_tree_root = CallTreeNode.create_root()
        self.tree_builder = CallTreeBuilder()
        # One latch for the whole signal: a typed start or stop silences every dynamic variant
        self.latch = TypedEventLatch(
            [CONTENTION_START_EVENT, CONTENTION_STOP_EVENT],
            CONTENTION_START_DYNAMIC_EVENTS | CONTENTION_STOP_DYNAMIC_EVENTS
        )
        self.pending: Dict[int, List[Tuple[float, Optional[StackFrame]]]] = {}
        self.total_wait_ms = 0.0
        self.total_count = 0

    def handle_event(self, event: TraceEvent) -> bool:
        if not self.is_runtime_event(event) or not self.latch.accept(event.event_name):
            return False

        name = event.event_name
        if name == CONTENTION_START_EVENT or name in CONTENTION_START_DYNAMIC_EVENTS:
            self.handle_start(event.thread_id, event.timestamp_ms, event.call_stack)
            return True

        return self.handle_stop(
            event.thread_id,
            event.timestamp_ms,
            PayloadExtractor.duration_ms(event),
            event.call_stack
        )

    def handle_start(self, thread_id: int, time_ms: float, stack: Optional[StackFrame]) -> None:
        self.pending.setdefault(thread_id, []).append((time_ms, stack))

    def handle_stop(
        self,
        thread_id: int,
        time_ms: float,
        duration_ms: float,
        stack: Optional[StackFrame]
    ) -> bool:
        """
        Close the innermost pending wait of a thread.

        Args:
            thread_id: Traced thread id
            time_ms: Stop timestamp
            duration_ms: Explicit duration from the payload, 0 when absent
            stack: Stop stack; the start stack is used when missing

        Returns:
            True if a positive wait was recorded
        """
        entries = self.pending.get(thread_id)
        if entries:
            start_time, start_stack = entries.pop()
            if not entries:
                del self.pending[thread_id]

            if duration_ms <= 0:
                duration_ms = time_ms - start_time
            if stack is None:
                stack = start_stack

        if duration_ms <= 0:
            return False

        frames = StackExtractor.root_first(StackExtractor.resolved_frames(stack))
        path = self.tree_builder.merge_path(self.call_tree_root, frames)
        for frame, node in zip(frames, path):
            node.total += duration_ms
            node.add_calls(1)
            self.tree_builder.record_frame(frame, duration_ms)

        self.total_wait_ms += duration_ms
        self.total_count += 1
        return True

    def build_result(self) -> ContentionProfileResult:
        root = self.call_tree_root
        root.total = self.total_wait_ms
        root.calls = min(MAX_CALLS, self.total_count)
        return ContentionProfileResult(
            top_functions=self.tree_builder.function_samples(),
            call_tree_root=root,
            total_wait_ms=self.total_wait_ms,
            total_count=self.total_count,
        )
