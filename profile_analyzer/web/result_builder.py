"""
Result builder for JSON output (CLI and web API).
"""

from typing import Callable, Dict, List, Optional, Tuple

from ..core.call_tree import AllocationCallTreeNode, CallTreeNode
from ..core.types import (
    AllocationCallTreeResult,
    ContentionProfileResult,
    CpuProfileResult,
    ExceptionProfileResult,
    ExceptionSiteSample,
    ExceptionTypeDetails,
    ProfileConfig,
)
from ..extractors import normalize_display_name, normalize_match_name, normalize_type_name
from ..filters import (
    CallTreeFilter,
    collect_hot_methods,
    compute_hotness,
    find_call_tree_matches,
    is_hotspot,
    is_runtime_noise,
    select_root_match,
    should_stop_at_leaf,
)
from ..formatters import format_bytes, format_percent, format_time, format_value


def _format_count(value: float) -> str:
    return f"{value:,.0f}"


class CallTreeExporter:
    """Exports the visible part of a call tree as nested dictionaries."""

    def __init__(
        self,
        config: ProfileConfig,
        total_time: float,
        total_samples: float,
        value_formatter: Callable[[float], str] = format_time
    ):
        """
        Initialize the exporter.

        Args:
            config: Query configuration (width, cutoff, depth, hotness threshold)
            total_time: Metric total used for percentages and hotness
            total_samples: Sample or call total used for hotness
            value_formatter: Formats node totals for display
        """
        self.config = config
        self.filter = CallTreeFilter(config)
        self.total_time = total_time
        self.total_samples = total_samples
        self.value_formatter = value_formatter

    def export(self, root: CallTreeNode) -> Dict:
        data = self._node_dict(root, is_leaf=not root.children)
        data['children'] = self._children(root, 0)
        return data

    def _children(self, node: CallTreeNode, depth: int) -> List[Dict]:
        if depth > self.config.max_depth:
            return []

        exported = []
        for child in self.filter.visible_children(node):
            next_depth = depth + 1
            match_name = normalize_match_name(child.name)
            stop_here = should_stop_at_leaf(match_name)
            grandchildren = []
            if not stop_here and next_depth <= self.config.max_depth:
                grandchildren = self._children(child, next_depth)

            data = self._node_dict(child, is_leaf=stop_here or not grandchildren)
            data['stop_at_leaf'] = stop_here
            data['children'] = grandchildren
            exported.append(data)
        return exported

    def _node_dict(self, node: CallTreeNode, is_leaf: bool) -> Dict:
        hotness = compute_hotness(node, self.total_time, self.total_samples)
        data = {
            'name': node.name,
            'display_name': node.name if node.is_root else normalize_display_name(node.name),
            'frame_index': node.frame_index,
            'total': node.total,
            'total_formatted': self.value_formatter(node.total),
            'self_time': node.self_time,
            'self_time_formatted': self.value_formatter(node.self_time),
            'calls': node.calls,
            'percent': format_percent(node.total, self.total_time),
            'hotness': hotness,
            'is_hotspot': not node.is_root and is_hotspot(hotness, self.config.hot_threshold),
            'is_leaf': is_leaf,
        }
        if node.has_timing:
            data['min_start'] = node.min_start
            data['max_end'] = node.max_end
        if node.allocation_bytes:
            data['allocation_bytes'] = node.allocation_bytes
            data['allocation_bytes_formatted'] = format_bytes(node.allocation_bytes)
            data['allocation_by_type'] = _by_type(node.allocation_by_type)
        if node.exception_count:
            data['exception_count'] = node.exception_count
            data['exception_by_type'] = _by_type(node.exception_by_type)
        return data


def _by_type(values: Dict[str, int]) -> List[Dict]:
    ordered = sorted(values.items(), key=lambda item: -item[1])
    return [{'type': normalize_type_name(name), 'value': value} for name, value in ordered]


def select_tree_root(root: CallTreeNode, config: ProfileConfig, total_time: float) -> Tuple[CallTreeNode, float, float]:
    """
    Apply the configured root filter.

    Returns:
        Tuple of (root node, total time, total samples); the original root and
        totals when no filter is set or nothing matches
    """
    if not config.root_filter:
        return root, total_time, root.calls

    matches = find_call_tree_matches(root, config.root_filter)
    if not matches:
        return root, total_time, root.calls

    selected = select_root_match(matches, config.include_runtime, config.root_mode)
    return selected, selected.total, selected.calls


def _function_rows(functions, config: ProfileConfig, value_formatter: Callable[[float], str]) -> List[Dict]:
    rows = []
    for sample in functions:
        if not config.include_runtime and is_runtime_noise(sample['name']):
            continue
        rows.append({
            'name': sample['name'],
            'display_name': normalize_display_name(sample['name']),
            'time_ms': sample['time_ms'],
            'time_formatted': value_formatter(sample['time_ms']),
            'calls': sample['calls'],
            'frame_index': sample['frame_index'],
        })
    return rows


def prepare_cpu_results(result: CpuProfileResult, config: ProfileConfig) -> Dict:
    """Structure a CPU (or speedscope) result."""
    def value_formatter(value: float) -> str:
        return format_value(value, result.time_unit_label)

    root, total_time, total_samples = select_tree_root(result.call_tree_root, config, result.call_tree_total)
    exporter = CallTreeExporter(config, total_time, total_samples, value_formatter)

    hot_methods = collect_hot_methods(root, total_time, total_samples, config.include_runtime, config.hot_threshold)

    return {
        'profile_type': 'cpu',
        'summary': {
            'source_path': result.source_path,
            'total_time': result.total_time,
            'call_tree_total': result.call_tree_total,
            'call_tree_total_formatted': value_formatter(result.call_tree_total),
            'total_samples': result.total_samples,
            'function_count': len(result.all_functions),
            'time_unit_label': result.time_unit_label,
            'count_label': result.count_label,
            'count_suffix': result.count_suffix,
        },
        'top_functions': _function_rows(result.all_functions, config, value_formatter),
        'hot_methods': hot_methods,
        'call_tree': exporter.export(root),
    }


def _allocation_tree(node: AllocationCallTreeNode, config: ProfileConfig, root_bytes: int, depth: int) -> List[Dict]:
    if depth > config.max_depth:
        return []

    tree_filter = CallTreeFilter(config)
    exported = []
    for child in tree_filter.visible_allocation_children(node):
        next_depth = depth + 1
        stop_here = should_stop_at_leaf(normalize_match_name(child.name))
        grandchildren = []
        if not stop_here and next_depth <= config.max_depth:
            grandchildren = _allocation_tree(child, config, root_bytes, next_depth)
        exported.append({
            'name': child.name,
            'display_name': normalize_display_name(child.name),
            'total_bytes': child.total_bytes,
            'total_bytes_formatted': format_bytes(child.total_bytes),
            'count': child.count,
            'percent': format_percent(child.total_bytes, root_bytes),
            'is_leaf': stop_here or not grandchildren,
            'stop_at_leaf': stop_here,
            'children': grandchildren,
        })
    return exported


def prepare_allocation_results(result: AllocationCallTreeResult, config: ProfileConfig) -> Dict:
    """Structure an allocation result, one call tree per allocated type."""
    types = []
    for type_root in result.type_roots:
        types.append({
            'name': type_root.name,
            'display_name': normalize_type_name(type_root.name),
            'total_bytes': type_root.total_bytes,
            'total_bytes_formatted': format_bytes(type_root.total_bytes),
            'count': type_root.count,
            'percent': format_percent(type_root.total_bytes, result.total_bytes),
            'call_tree': _allocation_tree(type_root, config, type_root.total_bytes, 0),
        })

    return {
        'profile_type': 'allocation',
        'summary': {
            'total_bytes': result.total_bytes,
            'total_bytes_formatted': format_bytes(result.total_bytes),
            'total_count': result.total_count,
            'type_count': len(result.type_roots),
        },
        'types': types,
    }


def _site_rows(sites: List[ExceptionSiteSample], config: ProfileConfig) -> List[Dict]:
    return [
        {'name': site['name'], 'display_name': normalize_display_name(site['name']), 'count': site['count']}
        for site in sites
        if config.include_runtime or not is_runtime_noise(site['name'])
    ]


def _count_tree(root: Optional[CallTreeNode], count: int, config: ProfileConfig) -> Optional[Dict]:
    if root is None:
        return None
    return CallTreeExporter(config, count, count, _format_count).export(root)


def _type_details(name: str, details: ExceptionTypeDetails, config: ProfileConfig) -> Dict:
    return {
        'name': name,
        'display_name': normalize_type_name(name),
        'thrown': details.thrown,
        'caught': details.caught,
        'catch_sites': _site_rows(details.catch_sites, config),
        'throw_call_tree': _count_tree(details.throw_root, details.thrown, config),
        'catch_call_tree': _count_tree(details.catch_root, details.caught, config),
    }


def prepare_exception_results(result: ExceptionProfileResult, config: ProfileConfig) -> Dict:
    """Structure an exception result with throw and catch trees."""
    return {
        'profile_type': 'exception',
        'summary': {
            'total_thrown': result.total_thrown,
            'total_caught': result.total_caught,
            'type_count': len(result.type_details),
        },
        'exception_types': [
            {
                'name': sample['name'],
                'display_name': normalize_type_name(sample['name']),
                'count': sample['count'],
                'percent': format_percent(sample['count'], result.total_thrown),
            }
            for sample in result.exception_types
        ],
        'catch_sites': _site_rows(result.catch_sites, config),
        'throw_call_tree': _count_tree(result.throw_call_tree_root, result.total_thrown, config),
        'catch_call_tree': _count_tree(result.catch_call_tree_root, result.total_caught, config),
        'type_details': [
            _type_details(name, details, config)
            for name, details in sorted(result.type_details.items(), key=lambda item: -item[1].thrown)
        ],
    }


def prepare_contention_results(result: ContentionProfileResult, config: ProfileConfig) -> Dict:
    """Structure a lock contention result."""
    root, total_time, total_samples = select_tree_root(result.call_tree_root, config, result.total_wait_ms)
    exporter = CallTreeExporter(config, total_time, total_samples)

    return {
        'profile_type': 'contention',
        'summary': {
            'total_wait_ms': result.total_wait_ms,
            'total_wait_formatted': format_time(result.total_wait_ms),
            'total_count': result.total_count,
        },
        'top_functions': _function_rows(result.top_functions, config, format_time),
        'call_tree': exporter.export(root),
    }


def prepare_results(result, config: Optional[ProfileConfig] = None) -> Dict:
    """
    Convert an analysis result to a structured format for JSON output.

    Call trees are exported through the query engine: noise elided, sibling
    cutoff and width applied, limited to the configured depth, with hotness
    and hotspot flags on every node.

    Args:
        result: CPU, allocation, exception or contention result
        config: Query configuration; defaults to ProfileConfig()

    Returns:
        Dictionary with structured results

    Raises:
        TypeError: If `result` is not an analysis result
    """
    config = config or ProfileConfig()

    if isinstance(result, CpuProfileResult):
        return prepare_cpu_results(result, config)
    if isinstance(result, AllocationCallTreeResult):
        return prepare_allocation_results(result, config)
    if isinstance(result, ExceptionProfileResult):
        return prepare_exception_results(result, config)
    if isinstance(result, ContentionProfileResult):
        return prepare_contention_results(result, config)
    raise TypeError(f"Cannot prepare results for {type(result).__name__}")
