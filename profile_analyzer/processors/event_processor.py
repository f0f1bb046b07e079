"""
Base class and event naming shared by the runtime-trace processors.
"""

from typing import FrozenSet, Iterable

from ..core.events import TraceEvent

RUNTIME_PROVIDER = 'Microsoft-Windows-DotNETRuntime'
SAMPLE_PROFILER_PROVIDER = 'Microsoft-DotNETCore-SampleProfiler'

ALLOCATION_TICK_EVENT = 'GC/AllocationTick'
ALLOCATION_TICK_DYNAMIC_EVENTS = frozenset({
    'GCAllocationTick', 'GCAllocationTick_V2', 'GCAllocationTick_V3', 'GCAllocationTick_V4',
})

EXCEPTION_THROW_EVENT = 'Exception/Start'
EXCEPTION_THROW_DYNAMIC_EVENTS = frozenset({'ExceptionStart', 'ExceptionThrown', 'ExceptionThrown_V1'})

EXCEPTION_CATCH_EVENT = 'ExceptionCatch/Start'
EXCEPTION_CATCH_DYNAMIC_EVENTS = frozenset({'ExceptionCatchStart'})

CONTENTION_START_EVENT = 'Contention/Start'
CONTENTION_STOP_EVENT = 'Contention/Stop'
CONTENTION_START_DYNAMIC_EVENTS = frozenset({'ContentionStart', 'ContentionStart_V2'})
CONTENTION_STOP_DYNAMIC_EVENTS = frozenset({'ContentionStop', 'ContentionStop_V2'})


class TypedEventLatch:
    """
    Chooses between the typed and dynamic events of one logical signal.

    Typed events are always accepted. Dynamic events are accepted only until
    the first typed event of the signal shows up; the latch never resets
    within a run.
    """

    def __init__(self, typed_names: Iterable[str], dynamic_names: Iterable[str]):
        self.typed_names: FrozenSet[str] = frozenset(typed_names)
        self.dynamic_names: FrozenSet[str] = frozenset(dynamic_names)
        self.saw_typed = False

    def matches(self, event_name: str) -> bool:
        return event_name in self.typed_names or event_name in self.dynamic_names

    def accept(self, event_name: str) -> bool:
        """
        Decide whether an event of this signal should be processed.

        Args:
            event_name: Name of the runtime event

        Returns:
            True for typed events, and for dynamic events while no typed
            event has been seen; False for unrelated events
        """
        if event_name in self.typed_names:
            self.saw_typed = True
            return True
        if event_name in self.dynamic_names:
            return not self.saw_typed
        return False


class RuntimeEventProcessor:
    """Consumes trace events one at a time, in delivery order."""

    def process(self, events: Iterable[TraceEvent]) -> int:
        """
        Feed every event to `handle_event`.

        Args:
            events: Decoded trace events in trace order

        Returns:
            Number of events the processor used
        """
        handled = 0
        for event in events:
            if self.handle_event(event):
                handled += 1
        return handled

    def handle_event(self, event: TraceEvent) -> bool:
        """
        Process a single event.

        Returns:
            True if the event contributed to the analysis
        """
        raise NotImplementedError

    @staticmethod
    def is_runtime_event(event: TraceEvent) -> bool:
        return event.provider_name == RUNTIME_PROVIDER
