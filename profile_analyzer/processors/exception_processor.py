"""
Exception throw and catch processing.
"""

from collections import defaultdict
from typing import DefaultDict, Dict, List, Optional

from ..core.call_tree import CallTreeNode, FrameTable, MAX_CALLS
from ..core.events import StackFrame, TraceEvent
from ..core.types import ExceptionProfileResult, ExceptionSiteSample, ExceptionTypeDetails, ExceptionTypeSample
from ..extractors import PayloadExtractor, StackExtractor, UNKNOWN_FRAME
from .event_processor import (
    EXCEPTION_CATCH_DYNAMIC_EVENTS,
    EXCEPTION_CATCH_EVENT,
    EXCEPTION_THROW_DYNAMIC_EVENTS,
    EXCEPTION_THROW_EVENT,
    RuntimeEventProcessor,
    TypedEventLatch,
)
from .tree_builder import CallTreeBuilder


def _site_samples(counts: Dict[str, int]) -> List[ExceptionSiteSample]:
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [{'name': name, 'count': count} for name, count in ordered]


class ExceptionProcessor(RuntimeEventProcessor):
    """
    Builds throw-site and catch-site trees, globally and per exception type.

    Throw trees and catch trees intern frames in separate tables.
    """

    def __init__(self):
        self.throw_builder = CallTreeBuilder(FrameTable())
        self.catch_builder = CallTreeBuilder(FrameTable())
        self.throw_root = CallTreeNode.create_root()
        self.catch_root = CallTreeNode.create_root()

        self.throw_latch = TypedEventLatch([EXCEPTION_THROW_EVENT], EXCEPTION_THROW_DYNAMIC_EVENTS)
        self.catch_latch = TypedEventLatch([EXCEPTION_CATCH_EVENT], EXCEPTION_CATCH_DYNAMIC_EVENTS)

        self.exception_counts: DefaultDict[str, int] = defaultdict(int)
        self.type_throw_roots: Dict[str, CallTreeNode] = {}
        self.type_catch_roots: Dict[str, CallTreeNode] = {}
        self.type_catch_counts: DefaultDict[str, int] = defaultdict(int)
        self.type_catch_sites: DefaultDict[str, DefaultDict[str, int]] = defaultdict(lambda: defaultdict(int))
        self.catch_sites: DefaultDict[str, int] = defaultdict(int)
        self.total_thrown = 0
        self.total_caught = 0

    def handle_event(self, event: TraceEvent) -> bool:
        if not self.is_runtime_event(event):
            return False

        if self.throw_latch.accept(event.event_name):
            self.record_throw(event)
            return True

        if self.catch_latch.accept(event.event_name):
            self.record_catch(event)
            return True

        return False

    @staticmethod
    def record_stack(builder: CallTreeBuilder, root: CallTreeNode, stack: Optional[StackFrame]) -> None:
        """Merge a stack below `root`, counting one occurrence on every visited node."""
        frames = StackExtractor.root_first(StackExtractor.resolved_frames(stack))
        for node in builder.merge_path(root, frames):
            node.total += 1
            node.add_calls(1)

    def record_throw(self, event: TraceEvent) -> None:
        type_name = PayloadExtractor.exception_type_name(event)
        self.exception_counts[type_name] += 1
        self.total_thrown += 1

        type_root = self.type_throw_roots.get(type_name)
        if type_root is None:
            type_root = CallTreeNode.create_root()
            self.type_throw_roots[type_name] = type_root

        self.record_stack(self.throw_builder, self.throw_root, event.call_stack)
        self.record_stack(self.throw_builder, type_root, event.call_stack)

    def record_catch(self, event: TraceEvent) -> None:
        """Merge a catch stack and count its innermost frame as the catch site."""
        type_name = PayloadExtractor.exception_type_name(event)
        self.total_caught += 1
        self.type_catch_counts[type_name] += 1

        type_root = self.type_catch_roots.get(type_name)
        if type_root is None:
            type_root = CallTreeNode.create_root()
            self.type_catch_roots[type_name] = type_root

        self.record_stack(self.catch_builder, self.catch_root, event.call_stack)
        self.record_stack(self.catch_builder, type_root, event.call_stack)

        catch_site = StackExtractor.top_frame_name(event.call_stack) or UNKNOWN_FRAME
        self.catch_sites[catch_site] += 1
        self.type_catch_sites[type_name][catch_site] += 1

    @staticmethod
    def _finalize_root(root: CallTreeNode, count: int) -> None:
        root.total = count
        root.calls = min(MAX_CALLS, count)

    def build_result(self) -> ExceptionProfileResult:
        """
        Finalize every root and build the result.

        Per-type roots carry their thrown (or caught) count as total and
        calls. The global catch root is None when nothing was caught.
        """
        self._finalize_root(self.throw_root, self.total_thrown)

        catch_root = None
        if self.total_caught > 0:
            self._finalize_root(self.catch_root, self.total_caught)
            catch_root = self.catch_root

        for type_name, root in self.type_throw_roots.items():
            self._finalize_root(root, self.exception_counts[type_name])
        for type_name, root in self.type_catch_roots.items():
            self._finalize_root(root, self.type_catch_counts[type_name])

        type_details: Dict[str, ExceptionTypeDetails] = {}
        for type_name, thrown in self.exception_counts.items():
            type_details[type_name] = ExceptionTypeDetails(
                thrown=thrown,
                throw_root=self.type_throw_roots[type_name],
                caught=self.type_catch_counts.get(type_name, 0),
                catch_root=self.type_catch_roots.get(type_name),
                catch_sites=_site_samples(self.type_catch_sites.get(type_name, {})),
            )

        # Types that were only ever caught
        for type_name, caught in self.type_catch_counts.items():
            if type_name in type_details:
                continue
            type_details[type_name] = ExceptionTypeDetails(
                thrown=0,
                throw_root=CallTreeNode.create_root(),
                caught=caught,
                catch_root=self.type_catch_roots.get(type_name),
                catch_sites=_site_samples(self.type_catch_sites.get(type_name, {})),
            )

        exception_types: List[ExceptionTypeSample] = [
            {'name': name, 'count': count}
            for name, count in sorted(self.exception_counts.items(), key=lambda item: -item[1])
        ]

        return ExceptionProfileResult(
            exception_types=exception_types,
            throw_call_tree_root=self.throw_root,
            total_thrown=self.total_thrown,
            type_details=type_details,
            catch_sites=_site_samples(self.catch_sites),
            catch_call_tree_root=catch_root,
            total_caught=self.total_caught,
        )
