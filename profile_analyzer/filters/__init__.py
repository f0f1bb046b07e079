"""Call tree query engine: visibility, noise classification and hotness."""

from .call_tree_filters import (
    CallTreeFilter,
    get_call_tree_time,
    get_visible_children,
    get_visible_allocation_children,
    is_runtime_noise,
    should_stop_at_leaf,
)
from .hotspot_filter import (
    CallTreeMatch,
    HotMethod,
    collect_hot_methods,
    compute_hotness,
    find_call_tree_matches,
    is_hotspot,
    select_root_match,
)

__all__ = [
    "CallTreeFilter",
    "get_call_tree_time",
    "get_visible_children",
    "get_visible_allocation_children",
    "is_runtime_noise",
    "should_stop_at_leaf",
    "CallTreeMatch",
    "HotMethod",
    "collect_hot_methods",
    "compute_hotness",
    "find_call_tree_matches",
    "is_hotspot",
    "select_root_match",
]
