"""Data extraction utilities for profile inputs."""

from .name_normalizer import (
    NameNormalizer,
    UNMANAGED_CODE,
    UNKNOWN_TYPE,
    normalize_match_name,
    normalize_display_name,
    normalize_type_name,
    is_unmanaged_frame,
    build_method_filter,
)
from .stack_extractor import StackExtractor, UNKNOWN_FRAME
from .payload_extractor import PayloadExtractor

__all__ = [
    "NameNormalizer",
    "UNMANAGED_CODE",
    "UNKNOWN_TYPE",
    "UNKNOWN_FRAME",
    "normalize_match_name",
    "normalize_display_name",
    "normalize_type_name",
    "is_unmanaged_frame",
    "build_method_filter",
    "StackExtractor",
    "PayloadExtractor",
]
