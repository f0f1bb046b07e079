"""
Hotness scoring and call tree search.
"""

from typing import List, Optional, TypedDict

from ..core.call_tree import CallTreeNode
from ..extractors import build_method_filter, is_unmanaged_frame, normalize_display_name, normalize_match_name
from .call_tree_filters import get_call_tree_time, is_runtime_noise

ROOT_MODE_HOTTEST = 'hottest'
ROOT_MODE_FIRST = 'first'
ROOT_MODE_SHALLOWEST = 'shallowest'


class HotMethod(TypedDict):
    """Hottest occurrence of one method across a call tree."""
    filter: str
    name: str
    hotness: float


class CallTreeMatch:
    """A node whose name matched a search, with its depth and visit order."""

    def __init__(self, node: CallTreeNode, depth: int, order: int):
        self.node = node
        self.depth = depth
        self.order = order

    def __repr__(self) -> str:
        return f"CallTreeMatch({self.node.name!r}, depth={self.depth}, order={self.order})"


def compute_hotness(node: CallTreeNode, total_time: float, total_samples: float) -> float:
    """
    Score how hot a node is.

    Args:
        node: Call tree node
        total_time: Total time of the profile
        total_samples: Total sample (or call) count of the profile

    Returns:
        (calls / total_samples) * (self_time / total_time), or 0 when either
        total is not positive
    """
    if total_time <= 0 or total_samples <= 0:
        return 0.0
    return (node.calls / total_samples) * (node.self_time / total_time)


def is_hotspot(hotness: float, threshold: float) -> bool:
    return hotness >= threshold


def collect_hot_methods(
    root: CallTreeNode,
    total_time: float,
    total_samples: float,
    include_runtime: bool,
    hot_threshold: float
) -> List[HotMethod]:
    """
    Collect methods whose hotness reaches the threshold anywhere in the tree.

    Each method (keyed by its Type:Method filter, case-insensitively) keeps
    its hottest occurrence.

    Returns:
        Hot methods ordered by descending hotness, then by name
    """
    if total_time <= 0 or total_samples <= 0:
        return []

    hottest = {}
    for node in root.iter_nodes():
        if node.is_root or (not include_runtime and is_runtime_noise(node.name)):
            continue

        match_name = normalize_match_name(node.name)
        if is_unmanaged_frame(match_name):
            continue

        hotness = compute_hotness(node, total_time, total_samples)
        if not is_hotspot(hotness, hot_threshold):
            continue

        filter_name = build_method_filter(node.name) or match_name
        key = filter_name.lower()
        existing = hottest.get(key)
        if existing is None or hotness > existing['hotness']:
            hottest[key] = {'filter': filter_name, 'name': match_name, 'hotness': hotness}

    return sorted(hottest.values(), key=lambda entry: (-entry['hotness'], entry['name'].lower()))


def find_call_tree_matches(root: CallTreeNode, text: str) -> List[CallTreeMatch]:
    """
    Find every node whose raw or display name contains `text` (case-insensitive).

    Args:
        root: Tree to search; the sentinel root itself never matches
        text: Search text, surrounding whitespace ignored

    Returns:
        Matches in depth-first pre-order
    """
    needle = text.strip().lower()
    if not needle:
        return []

    matches = []
    pending = [(root, 0)]
    while pending:
        node, depth = pending.pop()
        if not node.is_root:
            display_name = normalize_display_name(node.name)
            if needle in display_name.lower() or needle in node.name.lower():
                matches.append(CallTreeMatch(node, depth, len(matches)))
        pending.extend((child, depth + 1) for child in reversed(list(node.children.values())))

    return matches


def select_root_match(
    matches: List[CallTreeMatch],
    include_runtime: bool,
    mode: Optional[str] = None
) -> CallTreeNode:
    """
    Pick the node a tree should be re-rooted at.

    Args:
        matches: Output of `find_call_tree_matches`
        include_runtime: If False, noise frames are only chosen when nothing else matched
        mode: 'hottest' (default, largest total), 'first' or 'shallowest'
              (smallest depth, then earliest visit)

    Returns:
        The selected node

    Raises:
        ValueError: If there are no matches
    """
    if not matches:
        raise ValueError("No call tree matches available.")

    normalized_mode = (mode or '').strip().lower() or ROOT_MODE_HOTTEST

    candidates = matches
    if not include_runtime:
        candidates = [match for match in matches if not is_runtime_noise(match.node.name)] or matches

    if normalized_mode in (ROOT_MODE_FIRST, ROOT_MODE_SHALLOWEST):
        return min(candidates, key=lambda match: (match.depth, match.order)).node

    # max() keeps the first of equal totals
    return max(candidates, key=lambda match: get_call_tree_time(match.node, False)).node
