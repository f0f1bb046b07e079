"""Profile ingestors: file readers, speedscope parsing and runtime-trace processors."""

from .file_processor import SpeedscopeFileProcessor, TraceEventFileProcessor
from .tree_builder import CallTreeBuilder, FrameStatistics
from .evented_processor import EventedProfileProcessor
from .sampled_processor import SampledProfileProcessor
from .speedscope_parser import SpeedscopeParser
from .event_processor import RuntimeEventProcessor, TypedEventLatch
from .cpu_sample_processor import CpuSampleProcessor
from .allocation_processor import AllocationProcessor
from .exception_processor import ExceptionProcessor
from .contention_processor import ContentionProcessor

__all__ = [
    "SpeedscopeFileProcessor",
    "TraceEventFileProcessor",
    "CallTreeBuilder",
    "FrameStatistics",
    "EventedProfileProcessor",
    "SampledProfileProcessor",
    "SpeedscopeParser",
    "RuntimeEventProcessor",
    "TypedEventLatch",
    "CpuSampleProcessor",
    "AllocationProcessor",
    "ExceptionProcessor",
    "ContentionProcessor",
]
