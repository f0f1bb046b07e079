"""
Payload field extraction for runtime trace events.

Payload field names differ between event versions and decoders, so every
lookup walks an ordered list of candidate names.
"""

from typing import Optional

from ..core.events import TraceEvent
from .name_normalizer import UNKNOWN_TYPE


class PayloadExtractor:
    """Extracts typed values from trace event payloads."""

    EXCEPTION_TYPE_FIELDS = ('ExceptionTypeName', 'ExceptionType', 'TypeName')
    DURATION_FIELDS = ('DurationNs', 'DurationNS', 'Duration')
    ALLOCATION_AMOUNT_FIELDS = ('AllocationAmount64', 'AllocationAmount')
    ALLOCATION_TYPE_FIELDS = ('TypeName',)

    @staticmethod
    def first_string(event: TraceEvent, *names: str) -> Optional[str]:
        """
        Return the first non-blank string payload among `names`.

        Args:
            event: Trace event
            names: Candidate payload field names, in priority order

        Returns:
            The value, or None if no candidate is present and non-blank
        """
        for name in names:
            value = event.payload_str(name)
            if value is not None and value.strip():
                return value
        return None

    @staticmethod
    def exception_type_name(event: TraceEvent) -> str:
        """
        Resolve the exception type of a throw or catch event.

        Priority:
        1. ExceptionTypeName / ExceptionType / TypeName
        2. Any payload field whose name contains "ExceptionType"
        3. "Unknown"
        """
        type_name = PayloadExtractor.first_string(event, *PayloadExtractor.EXCEPTION_TYPE_FIELDS)
        if type_name:
            return type_name

        for payload_name in event.payload_names:
            if 'exceptiontype' not in payload_name.lower():
                continue
            value = event.payload_str(payload_name)
            if value is not None and value.strip():
                return value

        return UNKNOWN_TYPE

    @staticmethod
    def duration_ms(event: TraceEvent) -> float:
        """Explicit wait duration of a contention stop event, 0 when absent."""
        for name in PayloadExtractor.DURATION_FIELDS:
            duration_ns = event.payload_int(name)
            if duration_ns is not None:
                return duration_ns / 1_000_000.0 if duration_ns > 0 else 0.0
        return 0.0

    @staticmethod
    def allocation_bytes(event: TraceEvent) -> int:
        for name in PayloadExtractor.ALLOCATION_AMOUNT_FIELDS:
            amount = event.payload_int(name)
            if amount is not None:
                return amount
        return 0

    @staticmethod
    def allocation_type_name(event: TraceEvent) -> str:
        type_name = PayloadExtractor.first_string(event, *PayloadExtractor.ALLOCATION_TYPE_FIELDS)
        return type_name if type_name else UNKNOWN_TYPE
