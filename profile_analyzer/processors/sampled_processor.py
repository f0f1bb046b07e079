"""
Sampled (weighted stack) profile processing.
"""

from typing import Any, Iterable, List, Optional

from ..core.call_tree import CallTreeNode
from .evented_processor import as_frame_index, as_number, get_or_create_frame_child
from .tree_builder import FrameStatistics


class SampledProfileProcessor:
    """Merges root-first sampled stacks, weighted per sample, onto a shared call tree."""

    def __init__(self, root: CallTreeNode, frame_names: List[str], stats: FrameStatistics):
        self.root = root
        self.frame_names = frame_names
        self.stats = stats

    @staticmethod
    def call_weight(weight: float, is_sample_unit: bool) -> int:
        """
        Call count contributed by one sample.

        Args:
            weight: Sample weight in the profile unit
            is_sample_unit: True if the profile unit counts samples

        Returns:
            Rounded weight (at least 1) for sample units, 0 for non-positive
            sample weights, and 1 for time units
        """
        if not is_sample_unit:
            return 1
        if weight <= 0:
            return 0
        return max(1, int(round(weight)))

    def process(
        self,
        samples: Iterable[Any],
        weights: Optional[List[Any]] = None,
        time_scale: float = 1.0,
        is_sample_unit: bool = False
    ) -> int:
        """
        Process the samples of one profile.

        Args:
            samples: Lists of frame indices, outermost frame first
            weights: Optional per-sample weights parallel to `samples`
            time_scale: Multiplier converting the profile unit to milliseconds
            is_sample_unit: True if the profile unit counts samples

        Returns:
            Number of samples that contributed at least one frame
        """
        merged = 0

        for sample_index, sample in enumerate(samples):
            if not isinstance(sample, list):
                continue

            weight = 1.0
            if weights is not None and sample_index < len(weights):
                explicit = as_number(weights[sample_index])
                if explicit is not None:
                    weight = explicit

            time_weight = weight * time_scale
            calls = self.call_weight(weight, is_sample_unit)

            current = self.root
            has_frame = False
            for raw_index in sample:
                frame_index = as_frame_index(raw_index)
                if frame_index is None:
                    continue

                has_frame = True
                current = get_or_create_frame_child(current, frame_index, self.frame_names)
                current.total += time_weight
                current.add_calls(calls)
                self.stats.add_time(frame_index, time_weight)
                self.stats.add_calls(frame_index, calls)

            if has_frame:
                current.self_time += time_weight
                self.stats.call_tree_total += time_weight
                merged += 1

        return merged
