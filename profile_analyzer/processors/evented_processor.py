"""
Evented (open/close) profile processing.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.call_tree import CallTreeNode
from .tree_builder import FrameStatistics

OPEN_EVENT = 'O'
CLOSE_EVENT = 'C'


def as_number(value: Any) -> Optional[float]:
    """Return a JSON number as float, None for anything else (booleans included)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def as_frame_index(value: Any) -> Optional[int]:
    """Return a non-negative integral frame index, None when the value is not one."""
    number = as_number(value)
    if number is None or number < 0 or number != int(number):
        return None
    return int(number)


def get_or_create_frame_child(parent: CallTreeNode, frame_index: int, frame_names: List[str]) -> CallTreeNode:
    name = frame_names[frame_index] if 0 <= frame_index < len(frame_names) else 'Unknown'
    return parent.get_or_create_child(frame_index, name)


class EventedProfileProcessor:
    """
    Replays open/close events of one profile onto a shared call tree.

    Every event with a non-empty stack charges the time elapsed since the
    previous event of the same profile to the frame on top of the stack.
    Close events that do not match the top of the stack are ignored.
    """

    def __init__(self, root: CallTreeNode, frame_names: List[str], stats: FrameStatistics):
        """
        Initialize the processor.

        Args:
            root: Root of the call tree the profile merges into
            frame_names: Shared frame table of the document
            stats: Shared per-frame aggregates and grand total
        """
        self.root = root
        self.frame_names = frame_names
        self.stats = stats

    def process(self, events: Iterable[Dict], time_scale: float = 1.0) -> int:
        """
        Process the events of one profile.

        Args:
            events: Dicts with type ('O' or 'C'), frame and at keys
            time_scale: Multiplier converting the profile unit to milliseconds

        Returns:
            Number of well-formed events processed
        """
        stack: List[Tuple[CallTreeNode, float, int]] = []
        last_at: Optional[float] = None
        processed = 0

        for event in events:
            if not isinstance(event, dict):
                continue

            event_type = event.get('type')
            frame_index = as_frame_index(event.get('frame'))
            at = as_number(event.get('at'))
            if not isinstance(event_type, str) or frame_index is None or at is None:
                continue

            at *= time_scale
            processed += 1

            if last_at is not None and stack:
                top_node, _, top_index = stack[-1]
                delta = max(0.0, at - last_at)
                top_node.self_time += delta
                self.stats.add_self_time(top_index, delta)
            last_at = at

            if event_type == OPEN_EVENT:
                parent = stack[-1][0] if stack else self.root
                child = get_or_create_frame_child(parent, frame_index, self.frame_names)
                child.add_calls(1)
                stack.append((child, at, frame_index))
                self.stats.add_calls(frame_index, 1)
            elif event_type == CLOSE_EVENT:
                if stack and stack[-1][2] == frame_index:
                    node, open_time, _ = stack.pop()
                    duration = at - open_time
                    node.total += duration
                    node.update_timing(open_time, at)
                    self.stats.add_time(frame_index, duration)
                    if not stack:
                        self.stats.call_tree_total += duration

        return processed
