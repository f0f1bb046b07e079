"""
Call tree data model shared by every profile ingestor.
"""

from typing import Dict, Iterator, List, Optional

# Call counters saturate instead of growing without bound
MAX_CALLS = 2 ** 31 - 1

ROOT_FRAME_INDEX = -1
ROOT_NAME = 'Total'


class CallTreeNode:
    """A frame-indexed node of a merged call tree."""

    def __init__(self, frame_index: int, name: str):
        """
        Initialize an empty node.

        Args:
            frame_index: Stable frame identity within one analysis run (-1 for the root)
            name: Raw symbol name as emitted by the runtime
        """
        self.frame_index = frame_index
        self.name = name
        self.total = 0.0
        self.self_time = 0.0
        self.calls = 0
        self.children: Dict[int, 'CallTreeNode'] = {}

        # Timing bounds, only set by timed (evented) protocols
        self.min_start: Optional[float] = None
        self.max_end: Optional[float] = None

        self.allocation_bytes = 0
        self.allocation_count = 0
        self.allocation_by_type: Dict[str, int] = {}
        self.allocation_count_by_type: Dict[str, int] = {}
        self.exception_count = 0
        self.exception_by_type: Dict[str, int] = {}

    @classmethod
    def create_root(cls) -> 'CallTreeNode':
        """Create the sentinel root node every tree hangs off."""
        return cls(ROOT_FRAME_INDEX, ROOT_NAME)

    @property
    def is_root(self) -> bool:
        return self.frame_index < 0

    @property
    def has_timing(self) -> bool:
        """Whether at least one timed invocation was recorded."""
        return self.min_start is not None and self.max_end is not None

    def get_or_create_child(self, frame_index: int, name: str) -> 'CallTreeNode':
        """
        Return the child for a frame, creating it on first visit.

        Args:
            frame_index: Frame identity of the callee
            name: Name used only when the child has to be created

        Returns:
            The unique child node for (self, frame_index)
        """
        child = self.children.get(frame_index)
        if child is None:
            child = CallTreeNode(frame_index, name)
            self.children[frame_index] = child
        return child

    def add_calls(self, count: int = 1) -> None:
        if count <= 0:
            return
        self.calls = min(MAX_CALLS, self.calls + count)

    def update_timing(self, start: float, end: float) -> None:
        """Widen the timing bounds to cover [start, end]."""
        if self.min_start is None or start < self.min_start:
            self.min_start = start
        if self.max_end is None or end > self.max_end:
            self.max_end = end

    def add_allocation_totals(self, size_bytes: int) -> None:
        if size_bytes <= 0:
            return
        self.allocation_bytes += size_bytes
        self.allocation_count = min(MAX_CALLS, self.allocation_count + 1)

    def add_allocation(self, type_name: str, size_bytes: int) -> None:
        """
        Record one allocation of a type beneath this frame.

        Args:
            type_name: Allocated type name
            size_bytes: Allocated bytes; non-positive amounts are ignored
        """
        if size_bytes <= 0:
            return

        self.add_allocation_totals(size_bytes)
        self.allocation_by_type[type_name] = self.allocation_by_type.get(type_name, 0) + size_bytes
        count = self.allocation_count_by_type.get(type_name, 0)
        self.allocation_count_by_type[type_name] = min(MAX_CALLS, count + 1)

    def add_exception_totals(self, count: int) -> None:
        if count <= 0:
            return
        self.exception_count += count

    def add_exception(self, type_name: str, count: int) -> None:
        """Record `count` exceptions of a type thrown beneath this frame."""
        if count <= 0:
            return

        self.add_exception_totals(count)
        self.exception_by_type[type_name] = self.exception_by_type.get(type_name, 0) + count

    def sum_children_total(self) -> float:
        return sum(child.total for child in self.children.values())

    def sum_children_calls(self) -> int:
        return min(MAX_CALLS, sum(child.calls for child in self.children.values()))

    def iter_nodes(self) -> Iterator['CallTreeNode']:
        """Walk this node and all descendants depth-first, parents before children."""
        pending = [self]
        while pending:
            node = pending.pop()
            yield node
            # Reverse keeps insertion order among siblings
            pending.extend(reversed(list(node.children.values())))

    def find_child_by_name(self, name: str) -> Optional['CallTreeNode']:
        for child in self.children.values():
            if child.name == name:
                return child
        return None

    def counters_dict(self) -> Dict:
        data = {
            'frame_index': self.frame_index,
            'name': self.name,
            'total': self.total,
            'self_time': self.self_time,
            'calls': self.calls,
            'min_start': self.min_start,
            'max_end': self.max_end,
        }
        if self.allocation_bytes:
            data['allocation_bytes'] = self.allocation_bytes
            data['allocation_count'] = self.allocation_count
            data['allocation_by_type'] = dict(self.allocation_by_type)
            data['allocation_count_by_type'] = dict(self.allocation_count_by_type)
        if self.exception_count:
            data['exception_count'] = self.exception_count
            data['exception_by_type'] = dict(self.exception_by_type)
        return data

    def to_dict(self, include_children: bool = True) -> Dict:
        """
        Snapshot the node into plain dictionaries.

        Args:
            include_children: If True, include every descendant

        Returns:
            Dictionary with the node's counters (and children if requested)
        """
        data = self.counters_dict()
        if not include_children:
            return data

        data['children'] = []
        pending = [(self, data)]
        while pending:
            node, node_data = pending.pop()
            for child in node.children.values():
                child_data = child.counters_dict()
                child_data['children'] = []
                node_data['children'].append(child_data)
                pending.append((child, child_data))
        return data

    def __repr__(self) -> str:
        return (f"CallTreeNode(frame_index={self.frame_index}, name={self.name!r}, "
                f"total={self.total}, self_time={self.self_time}, calls={self.calls})")


class AllocationCallTreeNode:
    """String-keyed allocation tree node (one tree per allocated type)."""

    def __init__(self, name: str):
        self.name = name
        self.total_bytes = 0
        self.count = 0
        self.children: Dict[str, 'AllocationCallTreeNode'] = {}

    def get_or_create_child(self, name: str) -> 'AllocationCallTreeNode':
        child = self.children.get(name)
        if child is None:
            child = AllocationCallTreeNode(name)
            self.children[name] = child
        return child

    def add(self, size_bytes: int) -> None:
        self.total_bytes += size_bytes
        self.count += 1

    def to_dict(self) -> Dict:
        data = {'name': self.name, 'total_bytes': self.total_bytes, 'count': self.count, 'children': []}
        pending = [(self, data)]
        while pending:
            node, node_data = pending.pop()
            for child in node.children.values():
                child_data = {'name': child.name, 'total_bytes': child.total_bytes,
                              'count': child.count, 'children': []}
                node_data['children'].append(child_data)
                pending.append((child, child_data))
        return data

    def __repr__(self) -> str:
        return (f"AllocationCallTreeNode(name={self.name!r}, total_bytes={self.total_bytes}, "
                f"count={self.count})")


class FrameTable:
    """Interns frame names into stable integer indices for one analysis run."""

    def __init__(self):
        self._indices: Dict[str, int] = {}
        self._names: List[str] = []

    def index_of(self, name: str) -> int:
        """Return the index for a frame name, assigning the next one if unseen."""
        index = self._indices.get(name)
        if index is None:
            index = len(self._names)
            self._names.append(name)
            self._indices[name] = index
        return index

    def get(self, name: str) -> Optional[int]:
        return self._indices.get(name)

    def name_of(self, index: int) -> str:
        if 0 <= index < len(self._names):
            return self._names[index]
        return 'Unknown'

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: str) -> bool:
        return name in self._indices
