"""
Allocation tick processing.

Each positive allocation lands in two places: the allocation maps of a
frame-indexed call tree (where allocation happens) and a name-keyed tree
dedicated to the allocated type (what allocates that type).
"""

from typing import Dict, Optional

from ..core.call_tree import AllocationCallTreeNode, CallTreeNode, MAX_CALLS
from ..core.events import TraceEvent
from ..core.types import AllocationCallTreeResult
from ..extractors import PayloadExtractor, StackExtractor
from .event_processor import (
    ALLOCATION_TICK_DYNAMIC_EVENTS,
    ALLOCATION_TICK_EVENT,
    RuntimeEventProcessor,
    TypedEventLatch,
)
from .tree_builder import CallTreeBuilder


class AllocationProcessor(RuntimeEventProcessor):
    """Builds per-type allocation trees from allocation tick events."""

    def __init__(
        self,
        call_tree_root: Optional[CallTreeNode] = None,
        tree_builder: Optional[CallTreeBuilder] = None
    ):
        """
        Initialize the processor.

        Args:
            call_tree_root: Call tree receiving the allocation overlay; a new
                            tree is created when omitted
            tree_builder: Builder owning the frame table of `call_tree_root`
        """
        self.call_tree_root = call_tree_root if call_tree_root is not None else CallTreeNode.create_root()
        self.tree_builder = tree_builder if tree_builder is not None else CallTreeBuilder()
        self.latch = TypedEventLatch([ALLOCATION_TICK_EVENT], ALLOCATION_TICK_DYNAMIC_EVENTS)

        self.type_roots: Dict[str, AllocationCallTreeNode] = {}
        self.total_bytes = 0
        self.total_count = 0

    def handle_event(self, event: TraceEvent) -> bool:
        if not self.is_runtime_event(event) or not self.latch.accept(event.event_name):
            return False

        size_bytes = PayloadExtractor.allocation_bytes(event)
        if size_bytes <= 0:
            return False

        self.record_allocation(PayloadExtractor.allocation_type_name(event), size_bytes, event)
        return True

    def record_allocation(self, type_name: str, size_bytes: int, event: TraceEvent) -> None:
        """
        Record one allocation.

        Args:
            type_name: Allocated type name
            size_bytes: Positive allocated byte count
            event: Event carrying the allocating stack
        """
        type_root = self.type_roots.get(type_name)
        if type_root is None:
            type_root = AllocationCallTreeNode(type_name)
            self.type_roots[type_name] = type_root

        # Allocations without a stack still count towards the totals
        self.total_bytes += size_bytes
        self.total_count = min(MAX_CALLS, self.total_count + 1)
        type_root.add(size_bytes)

        stack = event.call_stack
        if stack is None:
            return

        node = type_root
        for frame in StackExtractor.allocation_frames(stack):
            node = node.get_or_create_child(frame)
            node.add(size_bytes)

        self.overlay(type_name, size_bytes, event)

    def overlay(self, type_name: str, size_bytes: int, event: TraceEvent) -> None:
        """Add the allocation to every frame on the root-to-leaf call tree path."""
        frames = StackExtractor.root_first(StackExtractor.cpu_frames(event.call_stack))
        self.call_tree_root.add_allocation(type_name, size_bytes)
        for node in self.tree_builder.merge_path(self.call_tree_root, frames):
            node.add_allocation(type_name, size_bytes)

    def build_result(self) -> AllocationCallTreeResult:
        """Type roots ordered by descending allocated bytes."""
        roots = sorted(self.type_roots.values(), key=lambda root: -root.total_bytes)
        return AllocationCallTreeResult(
            total_bytes=self.total_bytes,
            total_count=self.total_count,
            type_roots=roots,
            call_tree_root=self.call_tree_root,
        )
