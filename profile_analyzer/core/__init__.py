"""Core components for profile analysis."""

from .analyzer import ProfileAnalyzer, PROFILE_KINDS
from .call_tree import AllocationCallTreeNode, CallTreeNode, FrameTable, MAX_CALLS
from .errors import ProfilerAnalysisError
from .events import StackFrame, TraceEvent
from .types import (
    AllocationCallTreeResult,
    ContentionProfileResult,
    CpuProfileResult,
    EmptyProfile,
    ExceptionProfileResult,
    ExceptionSiteSample,
    ExceptionTypeDetails,
    ExceptionTypeSample,
    FunctionSample,
    ProfileConfig,
)

__all__ = [
    "ProfileAnalyzer",
    "PROFILE_KINDS",
    "AllocationCallTreeNode",
    "CallTreeNode",
    "FrameTable",
    "MAX_CALLS",
    "ProfilerAnalysisError",
    "StackFrame",
    "TraceEvent",
    "AllocationCallTreeResult",
    "ContentionProfileResult",
    "CpuProfileResult",
    "EmptyProfile",
    "ExceptionProfileResult",
    "ExceptionSiteSample",
    "ExceptionTypeDetails",
    "ExceptionTypeSample",
    "FunctionSample",
    "ProfileConfig",
]
