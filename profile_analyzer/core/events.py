"""
Decoded runtime trace events consumed by the runtime-trace processors.

Binary decoding of the trace container happens elsewhere; these classes are
the shape the processors rely on.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional


class StackFrame:
    """One frame of a captured call stack, linked to its caller."""

    def __init__(self, method_name: Optional[str], caller: Optional['StackFrame'] = None):
        self.method_name = method_name
        self.caller = caller

    @classmethod
    def from_names(cls, names: Iterable[Optional[str]]) -> Optional['StackFrame']:
        """
        Build a linked stack from frame names ordered innermost first.

        Args:
            names: Method names, leaf frame first, outermost caller last

        Returns:
            The leaf frame, or None for an empty list
        """
        leaf = None
        for name in reversed(list(names)):
            leaf = cls(name, leaf)
        return leaf

    def walk(self) -> Iterator['StackFrame']:
        """Yield this frame and then each caller up to the top of the stack."""
        current = self
        while current is not None:
            yield current
            current = current.caller

    def __repr__(self) -> str:
        return f"StackFrame({self.method_name!r})"


class TraceEvent:
    """A decoded runtime trace event."""

    def __init__(
        self,
        provider_name: str,
        event_name: str,
        thread_id: int = 0,
        timestamp_ms: float = 0.0,
        call_stack: Optional[StackFrame] = None,
        payload: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize a trace event.

        Args:
            provider_name: Name of the emitting provider
            event_name: Event name within the provider
            thread_id: Id of the traced thread that emitted the event
            timestamp_ms: Timestamp relative to trace start, in milliseconds
            call_stack: Leaf frame of the captured stack, if any
            payload: Named payload fields
        """
        self.provider_name = provider_name
        self.event_name = event_name
        self.thread_id = thread_id
        self.timestamp_ms = timestamp_ms
        self.call_stack = call_stack
        self.payload = payload or {}

    @classmethod
    def from_dict(cls, data: Dict) -> 'TraceEvent':
        """
        Build an event from its JSON dump representation.

        Args:
            data: Dict with provider, name, thread_id, timestamp_ms,
                  stack (leaf first) and payload keys

        Returns:
            TraceEvent instance

        Raises:
            ValueError: If the provider or event name is missing, or the stack
                        is not a list of names
        """
        provider = data.get('provider')
        name = data.get('name')
        if not provider or not name:
            raise ValueError(f"Trace event is missing provider or name: {data!r}")

        stack_names = data.get('stack')
        if stack_names is not None:
            if not isinstance(stack_names, list):
                raise ValueError(f"Trace event stack must be a list, got {stack_names!r}")
            for frame_name in stack_names:
                if frame_name is not None and not isinstance(frame_name, str):
                    raise ValueError(f"Stack frame name must be a string or null, got {frame_name!r}")
        call_stack = StackFrame.from_names(stack_names) if stack_names else None

        return cls(
            provider_name=provider,
            event_name=name,
            thread_id=int(data.get('thread_id', 0)),
            timestamp_ms=float(data.get('timestamp_ms', 0.0)),
            call_stack=call_stack,
            payload=dict(data.get('payload') or {}),
        )

    @property
    def payload_names(self) -> List[str]:
        return list(self.payload.keys())

    def payload_by_name(self, name: str) -> Any:
        return self.payload.get(name)

    def payload_str(self, name: str) -> Optional[str]:
        value = self.payload.get(name)
        if value is None:
            return None
        return str(value)

    def payload_int(self, name: str) -> Optional[int]:
        """Coerce a payload field to int, None when absent or not numeric."""
        value = self.payload.get(name)
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            pass
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return None

    def __repr__(self) -> str:
        return (f"TraceEvent({self.provider_name!r}, {self.event_name!r}, "
                f"thread_id={self.thread_id}, timestamp_ms={self.timestamp_ms})")
