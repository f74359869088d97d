"""
Parameter merging.

Template inputs from every source are folded into one mapping. Precedence is
purely positional: a mapping later in the sequence overrides an earlier one
on a shared key. Callers choose the order; see ``context.PARAMETER_PRECEDENCE``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping


def merge_parameters(mappings: Iterable[Mapping[str, str]]) -> dict[str, str]:
    """
    Merge parameter mappings left to right, later mappings winning.

    Never raises on conflicting keys and never mutates its inputs.

    Args:
        mappings: Mappings ordered from lowest to highest precedence

    Returns:
        A new mapping holding every key seen

    Examples:
        >>> merge_parameters([{"a": "1", "b": "1"}, {"b": "2"}])
        {'a': '1', 'b': '2'}
        >>> merge_parameters([])
        {}
    """
    merged: dict[str, str] = {}
    for mapping in mappings:
        merged.update(mapping)
    return merged
