"""
Call tree builder shared by the runtime-trace processors.
"""

from collections import defaultdict
from typing import DefaultDict, List, Optional

from ..core.call_tree import CallTreeNode, FrameTable, MAX_CALLS
from ..core.types import FunctionSample


class CallTreeBuilder:
    """Merges root-first frame paths into a call tree and keeps per-frame aggregates."""

    def __init__(self, frame_table: Optional[FrameTable] = None):
        """
        Initialize with a frame table.

        Args:
            frame_table: Frame name interning table; a fresh one when omitted.
                         Trees that must not share frame indices use separate tables.
        """
        self.frame_table = frame_table if frame_table is not None else FrameTable()
        self.frame_totals: DefaultDict[str, float] = defaultdict(float)
        self.frame_counts: DefaultDict[str, int] = defaultdict(int)

    def merge_path(self, root: CallTreeNode, frames: List[str]) -> List[CallTreeNode]:
        """
        Walk (and create where needed) one child per frame below `root`.

        Args:
            root: Node the path hangs off
            frames: Frame names ordered root first

        Returns:
            The visited nodes, outermost first; the last entry is the leaf
        """
        path = []
        node = root
        for frame in frames:
            frame_index = self.frame_table.index_of(frame)
            node = node.get_or_create_child(frame_index, frame)
            path.append(node)
        return path

    def record_frame(self, name: str, time_ms: float, calls: int = 1) -> None:
        """Add to the flat per-frame aggregate (independent of tree position)."""
        self.frame_totals[name] += time_ms
        self.frame_counts[name] = min(MAX_CALLS, self.frame_counts[name] + calls)

    def function_samples(self) -> List[FunctionSample]:
        """Flat per-frame aggregates ordered by descending time."""
        ordered = sorted(self.frame_totals.items(), key=lambda item: -item[1])
        return [
            {
                'name': name,
                'time_ms': time_ms,
                'calls': self.frame_counts.get(name, 0),
                'frame_index': self.frame_table.get(name) if name in self.frame_table else -1,
            }
            for name, time_ms in ordered
        ]

    def total_time(self) -> float:
        return sum(self.frame_totals.values())


class FrameStatistics:
    """
    Side indices keyed by frame index for speedscope profiles.

    Evented and sampled profiles of one document share a single instance so
    their per-frame aggregates and grand total merge.
    """

    def __init__(self):
        self.frame_times: DefaultDict[int, float] = defaultdict(float)
        self.frame_self_times: DefaultDict[int, float] = defaultdict(float)
        self.frame_counts: DefaultDict[int, int] = defaultdict(int)
        self.call_tree_total = 0.0

    def add_time(self, frame_index: int, time_ms: float) -> None:
        self.frame_times[frame_index] += time_ms

    def add_self_time(self, frame_index: int, time_ms: float) -> None:
        self.frame_self_times[frame_index] += time_ms

    def add_calls(self, frame_index: int, calls: int) -> None:
        self.frame_counts[frame_index] = min(MAX_CALLS, self.frame_counts[frame_index] + calls)

    def function_samples(self, frame_names: List[str]) -> List[FunctionSample]:
        """Per-frame aggregates ordered by descending time, named from the frame list."""
        ordered = sorted(self.frame_times.items(), key=lambda item: -item[1])
        return [
            {
                'name': frame_names[frame_index] if 0 <= frame_index < len(frame_names) else 'Unknown',
                'time_ms': time_ms,
                'calls': self.frame_counts.get(frame_index, 0),
                'frame_index': frame_index,
            }
            for frame_index, time_ms in ordered
        ]

    def total_time(self) -> float:
        return sum(self.frame_times.values())
