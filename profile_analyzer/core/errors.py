"""
Errors raised by profile analysis.
"""

from typing import Optional


class ProfilerAnalysisError(Exception):
    """An input trace could not be decoded.

    Distinct from "no usable data" (None) and "empty trace" (EmptyProfile) so
    callers can report an unreadable trace differently.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
