"""
Runtime symbol name normalization.

Raw frame names look like
``System.Private.CoreLib!System.Collections.Generic.Dictionary`2[System.__Canon,System.__Canon].Resize(int32)``.
They are folded into short, stable names such as ``Dictionary<__Canon,__Canon>.Resize``.
"""

import re
from typing import Optional, Tuple

UNMANAGED_CODE = 'Unmanaged Code'
UNKNOWN_TYPE = 'Unknown'

_OPENERS = '<['
_CLOSERS = '>]'


class NameNormalizer:
    """Normalizes raw runtime method and type names."""

    def __init__(self):
        """Initialize regex patterns for the name folding passes."""
        # Namespace-qualified identifiers anywhere inside a type expression
        self.qualified_name_pattern = re.compile(
            r'\b(?:[A-Za-z_][A-Za-z0-9_]*\.)+(?P<type>[A-Za-z_][A-Za-z0-9_]*)'
        )
        self.generic_arity_pattern = re.compile(r'`\d+')
        # [] and [,,] are array ranks, everything else in brackets is generic arguments
        self.array_rank_pattern = re.compile(r'\[,*\]')
        self.state_machine_pattern = re.compile(r'^StateMachine\.[^.<>\s]+\.MoveNext$')
        self.unmanaged_markers = ('UNMANAGED_CODE_TIME', UNMANAGED_CODE.upper())

    def is_unmanaged_frame(self, name: Optional[str]) -> bool:
        """
        Check whether a frame name carries no usable managed symbol.

        Args:
            name: Raw or normalized frame name

        Returns:
            True for blank names, unmanaged sentinels and symbol-less fragments
        """
        trimmed = (name or '').strip()
        if not trimmed:
            return True

        upper = trimmed.upper()
        if any(marker in upper for marker in self.unmanaged_markers):
            return True

        if not any(ch.isalpha() for ch in trimmed):
            return True

        # Fragments such as "0[]&,int32)" are parameter tails without a symbol.
        # A module prefix only appears before the parameter list, which may hold !!0.
        head = self.strip_parameters(trimmed).split('!')[-1].lstrip()
        if not head:
            return True
        first = head[0]
        return not (first.isalpha() or first in '_<')

    def normalize_method_name(self, raw_name: Optional[str]) -> str:
        """
        Fold a raw method name into its canonical ``Type.Method`` form.

        Args:
            raw_name: Method name as emitted by the runtime

        Returns:
            Normalized method name, or ``Unmanaged Code``
        """
        if self.is_unmanaged_frame(raw_name):
            return UNMANAGED_CODE

        name = raw_name.strip()
        if self.state_machine_pattern.match(name):
            return name

        name = self.strip_parameters(name)

        # Drop the module prefix ("Module!Namespace.Type.Method")
        if '!' in name:
            name = name.split('!')[-1]

        type_part, method_part = self.split_type_and_method(name)
        if type_part is None:
            return self.clean_type_name(name)

        compiler_generated = self.format_compiler_generated_method(type_part, method_part)
        if compiler_generated:
            return compiler_generated

        return f"{self.clean_type_name(type_part)}.{method_part}"

    def normalize_type_name(self, raw_name: Optional[str]) -> str:
        """Fold a raw type name; blank names become ``Unknown``."""
        if raw_name is None or not raw_name.strip():
            return UNKNOWN_TYPE
        return self.clean_type_name(raw_name.strip())

    @staticmethod
    def strip_parameters(name: str) -> str:
        """
        Cut a method name at its parameter list.

        The first ``(`` outside any ``<...>`` or ``[...]`` group starts the
        parameter list.
        """
        depth = 0
        for index, ch in enumerate(name):
            if ch in _OPENERS:
                depth += 1
            elif ch in _CLOSERS:
                depth = max(0, depth - 1)
            elif ch == '(' and depth == 0 and index > 0:
                return name[:index].rstrip()
        return name

    @staticmethod
    def split_type_and_method(name: str) -> Tuple[Optional[str], str]:
        """
        Split at the last dot outside any bracket group.

        Returns:
            Tuple of (type_part, method_part); type_part is None when there is
            no usable separator
        """
        depth = 0
        last_dot = -1
        for index, ch in enumerate(name):
            if ch in _OPENERS:
                depth += 1
            elif ch in _CLOSERS:
                depth = max(0, depth - 1)
            elif ch == '.' and depth == 0:
                last_dot = index

        if last_dot <= 0 or last_dot >= len(name) - 1:
            return None, name

        # Constructors appear as "Type..ctor"
        type_part = name[:last_dot].rstrip('.')
        if not type_part:
            return None, name
        return type_part, name[last_dot + 1:]

    def clean_type_name(self, name: str) -> str:
        """
        Fold generic, array and nested-type syntax in a type expression.

        Examples:
            ``System.Collections.Generic.Dictionary`2[System.String,System.Int32]``
            becomes ``Dictionary<String,Int32>``; ``System.Int32[,]`` becomes
            ``Int32[,]``; ``Outer+Inner`` becomes ``Outer.Inner``.
        """
        if not name or not name.strip():
            return name

        normalized = self.qualified_name_pattern.sub(r'\g<type>', name)
        normalized = self.generic_arity_pattern.sub('', normalized)

        ranks = self.array_rank_pattern.findall(normalized)
        pieces = self.array_rank_pattern.split(normalized)
        folded = [piece.replace('[', '<').replace(']', '>') for piece in pieces]
        result = folded[0]
        for rank, piece in zip(ranks, folded[1:]):
            result += rank + piece

        return result.replace('+', '.')

    def format_compiler_generated_method(self, type_part: str, method_part: str) -> Optional[str]:
        """
        Render async/iterator state machines, local functions and lambdas.

        Args:
            type_part: Declaring type, possibly a compiler-generated class
            method_part: Method name

        Returns:
            Friendly name, or None when the method is not compiler generated
        """
        if not type_part.strip() or not method_part.strip():
            return None

        if method_part == 'MoveNext':
            state_method = self.extract_state_machine_method_name(type_part)
            if state_method:
                return f"StateMachine.{state_method}.MoveNext"

        lambda_owner = self.extract_lambda_owner(method_part)
        if not lambda_owner:
            return None

        if self.is_display_class_type(type_part):
            outer_type = self.extract_outer_type(type_part)
            prefix = f"{self.clean_type_name(outer_type)}." if outer_type.strip() else ''
        else:
            prefix = f"{self.clean_type_name(type_part)}."
        return f"{prefix}{lambda_owner} lambda"

    @staticmethod
    def is_display_class_type(type_part: str) -> bool:
        return '<>c__DisplayClass' in type_part or '+<>c' in type_part

    def extract_state_machine_method_name(self, type_part: str) -> Optional[str]:
        """
        Pull the original method name out of a state machine type.

        ``Program+<<Main>$>d__0`` yields ``Main``; a local function state
        machine such as ``Program+<<<Main>$>g__EvaluateAsync|0_2>d`` yields
        ``EvaluateAsync``.
        """
        local_index = type_part.rfind('g__')
        if local_index >= 0:
            start = local_index + 3
            end = len(type_part)
            for index in range(start, len(type_part)):
                if type_part[index] in '|>':
                    end = index
                    break
            return self.trim_compiler_generated_name(type_part[start:end])

        method_end = type_part.rfind('>d__')
        if method_end < 0:
            method_end = type_part.rfind('>d')
        if method_end < 0:
            method_end = type_part.rfind('>')
        if method_end < 0:
            return None

        method_start = type_part.rfind('<', 0, method_end)
        if method_start < 0 or method_start + 1 >= method_end:
            return None

        return self.trim_compiler_generated_name(type_part[method_start + 1:method_end])

    @staticmethod
    def extract_lambda_owner(method_part: str) -> Optional[str]:
        """``<AttachStatics>b__5_0`` yields ``AttachStatics``."""
        owner_start = method_part.find('<')
        owner_end = method_part.find('>')
        if owner_start < 0 or owner_end <= owner_start:
            return None

        owner = method_part[owner_start + 1:owner_end]
        return owner if owner.strip() else None

    @staticmethod
    def extract_outer_type(type_part: str) -> str:
        marker_index = type_part.find('+<')
        if marker_index > 0:
            return type_part[:marker_index]
        return type_part

    @staticmethod
    def trim_compiler_generated_name(name: str) -> Optional[str]:
        trimmed = name.strip()
        if not trimmed:
            return None

        trimmed = trimmed.strip('<>')
        while trimmed.endswith('$'):
            trimmed = trimmed[:-1].rstrip('>')

        return trimmed if trimmed.strip() else None

    def build_method_filter(self, raw_name: Optional[str]) -> Optional[str]:
        """
        Build a ``Type:Method`` filter string for a raw method name.

        Used to group call tree nodes that belong to the same method.
        """
        if raw_name is None or not raw_name.strip():
            return raw_name

        trimmed = self.strip_parameters(raw_name.strip()).strip().replace('+', '.')
        last_dot = trimmed.rfind('.')
        if 0 < last_dot < len(trimmed) - 1:
            return f"{trimmed[:last_dot]}:{trimmed[last_dot + 1:]}"
        return trimmed


_normalizer = NameNormalizer()


def normalize_match_name(raw_name: Optional[str]) -> str:
    """Canonical name used for filtering and leaf detection."""
    return _normalizer.normalize_method_name(raw_name)


def normalize_display_name(raw_name: Optional[str]) -> str:
    """Name shown in reports."""
    match_name = _normalizer.normalize_method_name(raw_name)
    if _normalizer.is_unmanaged_frame(match_name):
        return UNMANAGED_CODE
    return match_name


def normalize_type_name(raw_name: Optional[str]) -> str:
    return _normalizer.normalize_type_name(raw_name)


def is_unmanaged_frame(name: Optional[str]) -> bool:
    return _normalizer.is_unmanaged_frame(name)


def build_method_filter(raw_name: Optional[str]) -> Optional[str]:
    return _normalizer.build_method_filter(raw_name)
