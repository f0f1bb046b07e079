"""
Visible-children selection for call trees.

Runtime noise frames such as thread and process groupings are elided rather
than hidden: their children are promoted into the parent's candidate list.
"""

from typing import Callable, Iterator, List, Optional

from ..core.call_tree import AllocationCallTreeNode, CallTreeNode
from ..extractors import is_unmanaged_frame, normalize_display_name

# Substrings of normalized match names that end a traversal
STOP_AT_LEAF_MARKERS = (
    'CastHelpers.',
    'Array.Copy',
    'Dictionary<__Canon,__Canon>.Resize',
    'Buffer.BulkMoveWithWriteBarrier',
    'SpanHelpers.SequenceEqual',
    'HashSet<',
    'Enumerable+ArrayWhereSelectIterator<',
    'ImmutableDictionary<',
    'SegmentedArrayBuilder<__Canon>.ToArray',
    '__Canon',
)

RUNTIME_NOISE_MARKERS = ('(Non-Activities)', 'Thread', 'Threads', 'Process')


def _starts_with_digit(name: str) -> bool:
    trimmed = name.lstrip()
    return bool(trimmed) and trimmed[0].isdigit()


def is_runtime_noise(name: str) -> bool:
    """
    Default runtime noise classifier.

    Args:
        name: Raw frame name

    Returns:
        True for unmanaged frames, grouping frames and numeric frames
    """
    trimmed = name.lstrip()
    if is_unmanaged_frame(trimmed):
        return True
    if any(marker in trimmed for marker in RUNTIME_NOISE_MARKERS):
        return True
    return _starts_with_digit(trimmed) or _starts_with_digit(normalize_display_name(trimmed))


def should_stop_at_leaf(match_name: str) -> bool:
    """
    Check whether traversal should stop at a node.

    Args:
        match_name: Normalized match name of the node

    Returns:
        True for unmanaged code and known low-level runtime internals
        such as collection internals and copy primitives
    """
    if is_unmanaged_frame(match_name):
        return True
    if any(marker in match_name for marker in STOP_AT_LEAF_MARKERS):
        return True
    return 'List<' in match_name and match_name.endswith('.ToArray')


def get_call_tree_time(node: CallTreeNode, use_self_time: bool) -> float:
    return node.self_time if use_self_time else node.total


def _iter_visible(node, include_runtime: bool, noise: Callable[[str], bool]) -> Iterator:
    # Noise children are expanded in place, keeping sibling order
    pending = list(reversed(list(node.children.values())))
    while pending:
        child = pending.pop()
        if include_runtime or not noise(child.name):
            yield child
        else:
            pending.extend(reversed(list(child.children.values())))


def _select(ordered: List, metric: Callable, max_width: int, sibling_cutoff_percent: float) -> List:
    if not ordered:
        return ordered

    if sibling_cutoff_percent <= 0:
        return ordered[:max_width]

    top = metric(ordered[0])
    if top <= 0:
        return ordered[:max_width]

    min_value = top * sibling_cutoff_percent / 100.0
    return [child for child in ordered if metric(child) >= min_value][:max_width]


def get_visible_children(
    node: CallTreeNode,
    include_runtime: bool,
    use_self_time: bool,
    max_width: int,
    sibling_cutoff_percent: float,
    is_noise: Optional[Callable[[str], bool]] = None
) -> List[CallTreeNode]:
    """
    Compute the children shown under a node.

    Args:
        node: Parent node
        include_runtime: If True, noise frames are kept as regular children
        use_self_time: Rank by self time instead of total time
        max_width: Maximum number of children returned
        sibling_cutoff_percent: Drop children below this percentage of the
                                top child's metric (0 disables the cutoff)
        is_noise: Runtime noise classifier over raw names, `is_runtime_noise`
               when omitted

    Returns:
        Children (with noise elided and grandchildren promoted) ordered by
        descending metric
    """
    classifier = is_noise or is_runtime_noise

    def metric(child: CallTreeNode) -> float:
        return get_call_tree_time(child, use_self_time)

    ordered = sorted(_iter_visible(node, include_runtime, classifier), key=lambda child: -metric(child))
    return _select(ordered, metric, max_width, sibling_cutoff_percent)


def get_visible_allocation_children(
    node: AllocationCallTreeNode,
    include_runtime: bool,
    max_width: int,
    sibling_cutoff_percent: float,
    is_noise: Optional[Callable[[str], bool]] = None
) -> List[AllocationCallTreeNode]:
    """Same selection as `get_visible_children`, ranked by allocated bytes."""
    classifier = is_noise or is_runtime_noise

    def metric(child: AllocationCallTreeNode) -> float:
        return child.total_bytes

    ordered = sorted(_iter_visible(node, include_runtime, classifier), key=lambda child: -metric(child))
    return _select(ordered, metric, max_width, sibling_cutoff_percent)


class CallTreeFilter:
    """Applies the visible-children rules of a ProfileConfig."""

    def __init__(self, config):
        """
        Initialize with profile configuration.

        Args:
            config: ProfileConfig instance
        """
        self.config = config

    def visible_children(self, node: CallTreeNode) -> List[CallTreeNode]:
        return get_visible_children(
            node,
            self.config.include_runtime,
            self.config.use_self_time,
            self.config.max_width,
            self.config.sibling_cutoff_percent,
        )

    def visible_allocation_children(self, node: AllocationCallTreeNode) -> List[AllocationCallTreeNode]:
        return get_visible_allocation_children(
            node,
            self.config.include_runtime,
            self.config.max_width,
            self.config.sibling_cutoff_percent,
        )

    def metric(self, node: CallTreeNode) -> float:
        return get_call_tree_time(node, self.config.use_self_time)
