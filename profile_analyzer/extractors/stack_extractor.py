"""
Frame name enumeration for captured call stacks.

Each runtime-trace processor reads stacks slightly differently; the variants
live here so the processors only deal with tree merging.
"""

from typing import List, Optional

from ..core.events import StackFrame
from .name_normalizer import UNMANAGED_CODE

UNKNOWN_FRAME = 'Unknown'


class StackExtractor:
    """Turns linked stack frames into lists of frame names."""

    @staticmethod
    def _method_name(frame: StackFrame) -> Optional[str]:
        name = frame.method_name
        if name is None or not name.strip():
            return None
        return name

    @staticmethod
    def cpu_frames(stack: Optional[StackFrame]) -> List[str]:
        """
        Frames of a CPU sample, leaf first.

        Frames without a resolved method become ``Unmanaged Code``; a run of
        consecutive unresolved frames collapses into a single entry.
        """
        frames = []
        last_was_unknown = False
        if stack is None:
            return frames

        for frame in stack.walk():
            name = StackExtractor._method_name(frame)
            if name is None:
                if not last_was_unknown:
                    frames.append(UNMANAGED_CODE)
                    last_was_unknown = True
                continue

            last_was_unknown = False
            frames.append(name)

        return frames

    @staticmethod
    def allocation_frames(stack: Optional[StackFrame]) -> List[str]:
        """Frames of an allocation, leaf first, unresolved frames as ``Unknown``."""
        if stack is None:
            return []
        return [StackExtractor._method_name(frame) or UNKNOWN_FRAME for frame in stack.walk()]

    @staticmethod
    def resolved_frames(stack: Optional[StackFrame]) -> List[str]:
        """Frames with a resolved method name only, leaf first."""
        if stack is None:
            return []
        return [name for name in (StackExtractor._method_name(frame) for frame in stack.walk())
                if name is not None]

    @staticmethod
    def top_frame_name(stack: Optional[StackFrame]) -> Optional[str]:
        """Innermost frame's method name, None when unresolved."""
        if stack is None:
            return None
        return StackExtractor._method_name(stack)

    @staticmethod
    def root_first(frames: List[str]) -> List[str]:
        """
        Reverse leaf-first frames into a root-to-leaf merge path.

        Args:
            frames: Frame names, leaf first

        Returns:
            Root-first list; ``["Unknown"]`` when no frame is available
        """
        if not frames:
            return [UNKNOWN_FRAME]
        return list(reversed(frames))
