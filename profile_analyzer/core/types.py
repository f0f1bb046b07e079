"""
Type definitions for profile analysis.
"""

from typing import Dict, List, Optional, TypedDict

from .call_tree import AllocationCallTreeNode, CallTreeNode

ROOT_MODES = ('hottest', 'first', 'shallowest')


class FunctionSample(TypedDict):
    """Flat per-function aggregate."""
    name: str
    time_ms: float
    calls: int
    frame_index: int


class ExceptionTypeSample(TypedDict):
    """Number of exceptions thrown for one exception type."""
    name: str
    count: int


class ExceptionSiteSample(TypedDict):
    """Number of exceptions caught at one frame."""
    name: str
    count: int


class ProfileConfig:
    """Configuration for call tree queries."""

    def __init__(
        self,
        include_runtime: bool = False,
        use_self_time: bool = False,
        max_depth: int = 30,
        max_width: int = 4,
        sibling_cutoff_percent: float = 5,
        hot_threshold: float = 0.4,
        root_filter: Optional[str] = None,
        root_mode: str = 'hottest'
    ):
        """
        Initialize profile query configuration.

        Args:
            include_runtime: If True, runtime/process frames are shown instead of
                             being elided with their children promoted.
                             Default: False

            use_self_time: If True, children are ranked by self time instead of
                           total time. Default: False

            max_depth: Maximum call tree depth exported. Default: 30

            max_width: Maximum number of children shown per node. Default: 4

            sibling_cutoff_percent: Hide siblings below this percentage of the
                                    hottest sibling (0 disables). Default: 5

            hot_threshold: Hotness (0-1) at which a node is flagged as a hotspot.
                           Default: 0.4

            root_filter: If set, call trees are re-rooted at the node whose name
                         contains this text. Default: None (keep the Total root)

            root_mode: How to choose among several root_filter matches:
                       'hottest', 'first' or 'shallowest'. Default: 'hottest'

        Raises:
            ValueError: If a value is out of range
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        if max_width < 1:
            raise ValueError(f"max_width must be at least 1, got {max_width}")
        if not 0 <= sibling_cutoff_percent <= 100:
            raise ValueError(f"sibling_cutoff_percent must be within 0-100, got {sibling_cutoff_percent}")
        if not 0 <= hot_threshold <= 1:
            raise ValueError(f"hot_threshold must be within 0-1, got {hot_threshold}")
        if root_mode not in ROOT_MODES:
            raise ValueError(f"root_mode must be one of {', '.join(ROOT_MODES)}, got {root_mode!r}")

        self.include_runtime = include_runtime
        self.use_self_time = use_self_time
        self.max_depth = max_depth
        self.max_width = max_width
        self.sibling_cutoff_percent = sibling_cutoff_percent
        self.hot_threshold = hot_threshold
        self.root_filter = root_filter
        self.root_mode = root_mode


class EmptyProfile:
    """A well-formed trace that contained nothing to analyze."""

    def __init__(self, reason: str):
        self.reason = reason

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"EmptyProfile({self.reason!r})"


class CpuProfileResult:
    """CPU (or evented/sampled export) analysis result."""

    def __init__(
        self,
        all_functions: List[FunctionSample],
        total_time: float,
        call_tree_root: CallTreeNode,
        call_tree_total: float,
        source_path: Optional[str] = None,
        time_unit_label: str = 'ms',
        count_label: str = 'Calls',
        count_suffix: str = 'x',
        total_samples: int = 0
    ):
        self.all_functions = all_functions
        self.total_time = total_time
        self.call_tree_root = call_tree_root
        self.call_tree_total = call_tree_total
        self.source_path = source_path
        self.time_unit_label = time_unit_label
        self.count_label = count_label
        self.count_suffix = count_suffix
        # Falls back to the root's call count when the protocol has no sample notion
        self.total_samples = total_samples or call_tree_root.calls

    def function(self, name: str) -> Optional[FunctionSample]:
        """Look up the flat aggregate for a raw frame name."""
        for sample in self.all_functions:
            if sample['name'] == name:
                return sample
        return None


class AllocationCallTreeResult:
    """Per-type allocation trees plus the allocation overlay on a frame-indexed call tree."""

    def __init__(
        self,
        total_bytes: int,
        total_count: int,
        type_roots: List[AllocationCallTreeNode],
        call_tree_root: Optional[CallTreeNode] = None
    ):
        self.total_bytes = total_bytes
        self.total_count = total_count
        self.type_roots = type_roots
        self.call_tree_root = call_tree_root

    def type_root(self, type_name: str) -> Optional[AllocationCallTreeNode]:
        for root in self.type_roots:
            if root.name == type_name:
                return root
        return None


class ExceptionTypeDetails:
    """Throw and catch breakdown for a single exception type."""

    def __init__(
        self,
        thrown: int,
        throw_root: CallTreeNode,
        caught: int,
        catch_root: Optional[CallTreeNode],
        catch_sites: List[ExceptionSiteSample]
    ):
        self.thrown = thrown
        self.throw_root = throw_root
        self.caught = caught
        self.catch_root = catch_root
        self.catch_sites = catch_sites


class ExceptionProfileResult:
    """Exception throw/catch analysis result."""

    def __init__(
        self,
        exception_types: List[ExceptionTypeSample],
        throw_call_tree_root: CallTreeNode,
        total_thrown: int,
        type_details: Dict[str, ExceptionTypeDetails],
        catch_sites: List[ExceptionSiteSample],
        catch_call_tree_root: Optional[CallTreeNode],
        total_caught: int
    ):
        self.exception_types = exception_types
        self.throw_call_tree_root = throw_call_tree_root
        self.total_thrown = total_thrown
        self.type_details = type_details
        self.catch_sites = catch_sites
        self.catch_call_tree_root = catch_call_tree_root
        self.total_caught = total_caught


class ContentionProfileResult:
    """Lock contention analysis result."""

    def __init__(
        self,
        top_functions: List[FunctionSample],
        call_tree_root: CallTreeNode,
        total_wait_ms: float,
        total_count: int
    ):
        self.top_functions = top_functions
        self.call_tree_root = call_tree_root
        self.total_wait_ms = total_wait_ms
        self.total_count = total_count
