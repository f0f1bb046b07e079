"""
Profile Analyzer - Call Tree Profile Ingestion and Analysis Tool
"""

__version__ = "1.0.0"

from .core.analyzer import ProfileAnalyzer
from .core.errors import ProfilerAnalysisError
from .core.types import EmptyProfile, ProfileConfig

__all__ = ["ProfileAnalyzer", "ProfilerAnalysisError", "EmptyProfile", "ProfileConfig"]
