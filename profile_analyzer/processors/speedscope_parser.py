"""
Speedscope export parsing (evented and sampled profiles).
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.call_tree import CallTreeNode
from ..core.types import CpuProfileResult
from .evented_processor import EventedProfileProcessor
from .sampled_processor import SampledProfileProcessor
from .tree_builder import FrameStatistics

# Unit name -> (scale to milliseconds, counts samples)
UNIT_SCALES: Dict[str, Tuple[float, bool]] = {
    'nanoseconds': (1e-6, False),
    'nanosecond': (1e-6, False),
    'ns': (1e-6, False),
    'microseconds': (1e-3, False),
    'microsecond': (1e-3, False),
    'us': (1e-3, False),
    'milliseconds': (1.0, False),
    'millisecond': (1.0, False),
    'ms': (1.0, False),
    'seconds': (1e3, False),
    'second': (1e3, False),
    's': (1e3, False),
    'samples': (1.0, True),
    'sample': (1.0, True),
}


class SpeedscopeParser:
    """
    Builds one CPU result from the frames and profiles of a speedscope document.

    Frames must be set before profiles are added. Profiles can be fed one at a
    time so a streaming reader never has to hold the whole document.
    """

    def __init__(self, source_path: Optional[str] = None):
        self.source_path = source_path
        self.frame_names: List[str] = []
        self.call_tree_root = CallTreeNode.create_root()
        self.stats = FrameStatistics()
        self.parsed_profiles = 0

        self.has_sampled_profile = False
        self.has_sample_unit = False
        self.has_time_unit = False

        self.evented_processor = EventedProfileProcessor(self.call_tree_root, self.frame_names, self.stats)
        self.sampled_processor = SampledProfileProcessor(self.call_tree_root, self.frame_names, self.stats)

    @classmethod
    def parse_document(cls, document: Any, source_path: Optional[str] = None) -> Optional[CpuProfileResult]:
        """
        Parse an already-decoded speedscope document.

        Args:
            document: Parsed JSON object
            source_path: Optional path recorded on the result

        Returns:
            CpuProfileResult, or None when the document lacks shared.frames or
            profiles, or contains no evented or sampled profile
        """
        if not isinstance(document, dict):
            return None

        shared = document.get('shared')
        frames = shared.get('frames') if isinstance(shared, dict) else None
        profiles = document.get('profiles')
        if not isinstance(frames, list) or not isinstance(profiles, list):
            return None

        parser = cls(source_path)
        parser.set_frames(frames)
        for profile in profiles:
            parser.add_profile(profile)
        return parser.build_result()

    @staticmethod
    def get_unit_scale(unit: Any) -> Tuple[float, bool]:
        """
        Resolve a profile unit.

        Args:
            unit: Unit string; aliases and singular forms are accepted, case-insensitive

        Returns:
            Tuple of (scale to milliseconds, is sample unit). Missing or unknown
            units are treated as milliseconds.
        """
        if not isinstance(unit, str):
            return 1.0, False
        return UNIT_SCALES.get(unit.strip().lower(), (1.0, False))

    def set_frames(self, frames: Iterable[Any]) -> None:
        """Load the shared frame table; blank or missing names become 'Unknown'."""
        # Processors hold a reference to this list
        self.frame_names.clear()
        for frame in frames:
            name = frame.get('name') if isinstance(frame, dict) else None
            if not isinstance(name, str) or not name.strip():
                name = 'Unknown'
            self.frame_names.append(name)

    def add_profile(self, profile: Any) -> bool:
        """
        Merge one profile into the call tree.

        Returns:
            True if the profile was evented or sampled and got merged
        """
        if not isinstance(profile, dict):
            return False

        time_scale, is_sample_unit = self.get_unit_scale(profile.get('unit'))

        events = profile.get('events')
        if isinstance(events, list):
            self.parsed_profiles += 1
            self.has_time_unit = True
            self.evented_processor.process(events, time_scale)
            return True

        samples = profile.get('samples')
        if isinstance(samples, list):
            weights = profile.get('weights')
            self.parsed_profiles += 1
            self.has_sampled_profile = True
            if is_sample_unit:
                self.has_sample_unit = True
            else:
                self.has_time_unit = True
            self.sampled_processor.process(
                samples,
                weights if isinstance(weights, list) else None,
                time_scale,
                is_sample_unit
            )
            return True

        return False

    def build_result(self) -> Optional[CpuProfileResult]:
        """
        Finalize the root and build the result.

        Returns:
            CpuProfileResult, or None when no profile was merged
        """
        if self.parsed_profiles == 0:
            return None

        root = self.call_tree_root
        call_tree_total = self.stats.call_tree_total
        if call_tree_total <= 0:
            call_tree_total = root.sum_children_total()

        root.total = call_tree_total
        root.calls = root.sum_children_calls()
        for child in root.children.values():
            if child.has_timing:
                root.update_timing(child.min_start, child.max_end)

        time_unit_label = 'samples' if self.has_sample_unit and not self.has_time_unit else 'ms'
        count_label = 'Samples' if self.has_sampled_profile else 'Calls'
        count_suffix = ' samp' if self.has_sampled_profile else 'x'

        return CpuProfileResult(
            all_functions=self.stats.function_samples(self.frame_names),
            total_time=self.stats.total_time(),
            call_tree_root=root,
            call_tree_total=call_tree_total,
            source_path=self.source_path,
            time_unit_label=time_unit_label,
            count_label=count_label,
            count_suffix=count_suffix,
        )
