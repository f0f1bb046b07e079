"""
Profile file reading using the streaming JSON parser.
"""

import ijson
from typing import Iterator, Optional

from ..core.events import TraceEvent
from ..core.types import CpuProfileResult
from .speedscope_parser import SpeedscopeParser


class SpeedscopeFileProcessor:
    """Reads speedscope exports without loading the whole document."""

    @staticmethod
    def process_file(file_path: str) -> Optional[CpuProfileResult]:
        """
        Parse a speedscope JSON file.

        The file is read twice: once for the shared frame table and once for
        the profiles, so frames are known before any event is replayed.

        Args:
            file_path: Path to the speedscope JSON file

        Returns:
            CpuProfileResult, or None when the file has no shared.frames or
            profiles array, or no usable profile
        """
        print(f"Processing {file_path}...")

        parser = SpeedscopeParser(source_path=file_path)

        with open(file_path, 'rb') as f:
            for prefix, event, value in ijson.parse(f, use_float=True):
                if prefix == 'shared.frames' and event == 'start_array':
                    break
            else:
                print("No shared.frames array found.")
                return None

            f.seek(0)
            frames = list(ijson.items(f, 'shared.frames.item', use_float=True))
            parser.set_frames(frames)
            print(f"Found {len(frames)} frames.")

            f.seek(0)
            has_profiles = False
            for prefix, event, value in ijson.parse(f, use_float=True):
                if prefix == 'profiles' and event == 'start_array':
                    has_profiles = True
                    break
            if not has_profiles:
                print("No profiles array found.")
                return None

            f.seek(0)
            profile_count = 0
            for profile in ijson.items(f, 'profiles.item', use_float=True):
                if parser.add_profile(profile):
                    profile_count += 1
                    if profile_count % 10 == 0:
                        print(f"  Read {profile_count} profiles...")

        print(f"Completed reading file: {profile_count} profiles parsed.")
        return parser.build_result()


class TraceEventFileProcessor:
    """Reads decoded runtime trace event dumps."""

    @staticmethod
    def iter_events(file_path: str) -> Iterator[TraceEvent]:
        """
        Stream trace events from a JSON dump.

        Args:
            file_path: Path to a {"events": [...]} JSON file

        Yields:
            TraceEvent instances in file order

        Raises:
            ValueError: If an event is missing its provider or name
        """
        print(f"Processing {file_path}...")

        event_count = 0
        with open(file_path, 'rb') as f:
            for data in ijson.items(f, 'events.item', use_float=True):
                if not isinstance(data, dict):
                    raise ValueError(f"Trace event must be an object, got {data!r}")
                event_count += 1
                yield TraceEvent.from_dict(data)

                if event_count % 100000 == 0:
                    print(f"  Read {event_count} events...")

        print(f"Completed reading file: {event_count} events found.")
