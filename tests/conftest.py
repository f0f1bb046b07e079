"""
Pytest configuration and shared fixtures for profile analyzer tests.
"""
import json
import pytest

from profile_analyzer.core.events import StackFrame, TraceEvent

RUNTIME = 'Microsoft-Windows-DotNETRuntime'
SAMPLER = 'Microsoft-DotNETCore-SampleProfiler'


@pytest.fixture
def two_thread_evented_document():
    """Evented export with two threads sharing frames A, B and C."""
    return {
        "shared": {"frames": [{"name": "A"}, {"name": "B"}, {"name": "C"}]},
        "profiles": [
            {
                "type": "evented",
                "unit": "milliseconds",
                "events": [
                    {"type": "O", "frame": 0, "at": 0},
                    {"type": "O", "frame": 1, "at": 1},
                    {"type": "C", "frame": 1, "at": 3},
                    {"type": "C", "frame": 0, "at": 5},
                ]
            },
            {
                "type": "evented",
                "unit": "milliseconds",
                "events": [
                    {"type": "O", "frame": 0, "at": 0},
                    {"type": "O", "frame": 2, "at": 2},
                    {"type": "C", "frame": 2, "at": 4},
                    {"type": "C", "frame": 0, "at": 6},
                ]
            }
        ]
    }


@pytest.fixture
def sampled_document():
    """Sampled export counted in samples: stacks [A, B] x2 and [A, C] x1."""
    return {
        "shared": {"frames": [{"name": "A"}, {"name": "B"}, {"name": "C"}]},
        "profiles": [
            {
                "type": "sampled",
                "unit": "samples",
                "samples": [[0, 1], [0, 2]],
                "weights": [2, 1]
            }
        ]
    }


@pytest.fixture
def speedscope_file(tmp_path, two_thread_evented_document):
    """Write the two-thread evented document to a temporary file."""
    path = tmp_path / "profile.speedscope.json"
    with open(path, "w") as f:
        json.dump(two_thread_evented_document, f)
    return str(path)


@pytest.fixture
def make_event():
    """Factory for decoded runtime trace events (stack given leaf first)."""
    def _make_event(name, provider=RUNTIME, thread_id=1, timestamp_ms=0.0, stack=None, **payload):
        call_stack = StackFrame.from_names(stack) if stack else None
        return TraceEvent(provider, name, thread_id, timestamp_ms, call_stack, payload)
    return _make_event


@pytest.fixture
def make_sample(make_event):
    """Factory for CPU sample events from the sample profiler."""
    def _make_sample(timestamp_ms, stack, thread_id=1):
        return make_event('Thread/Sample', provider=SAMPLER, thread_id=thread_id,
                          timestamp_ms=timestamp_ms, stack=stack)
    return _make_sample


@pytest.fixture
def write_events(tmp_path):
    """Write event dicts to a {"events": [...]} dump and return its path."""
    def _write_events(events, name="events.json"):
        path = tmp_path / name
        with open(path, "w") as f:
            json.dump({"events": events}, f)
        return str(path)
    return _write_events
