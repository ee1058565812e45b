"""
SQL parameter binding utilities.

Statements produced by SQLBridge use positional ``?`` placeholders. The
builders record the column each placeholder stands for, and the helpers here
turn a record (column -> value mapping) into a positional parameter list in
exactly that order.
"""

from typing import Any, List, Mapping, Sequence

from ..exceptions import PreconditionError

PLACEHOLDER = "?"


def build_placeholders(count: int, placeholder: str = PLACEHOLDER) -> List[str]:
    """
    Build ``count`` positional placeholders.

    Examples:
        >>> build_placeholders(3)
        ['?', '?', '?']
    """
    if count < 0:
        raise PreconditionError(f"Placeholder count must be >= 0, got {count}")
    return [placeholder] * count


def bind_ordered(parameter_names: Sequence[str], values: Mapping[str, Any]) -> List[Any]:
    """
    Order record values to match the placeholder order of a statement.

    Args:
        parameter_names: Column name bound to each placeholder, in order
        values: Record values keyed by column name

    Returns:
        Positional parameter list

    Raises:
        PreconditionError: If the value count or names do not match the
            placeholders

    Examples:
        >>> bind_ordered(["id", "name"], {"name": "Ann", "id": 7})
        [7, 'Ann']
    """
    if len(values) != len(parameter_names):
        raise PreconditionError(
            f"Statement expects {len(parameter_names)} parameters, got {len(values)} values"
        )
    missing = [name for name in parameter_names if name not in values]
    if missing:
        raise PreconditionError(f"No value supplied for parameters: {missing}")
    return [values[name] for name in parameter_names]


__all__ = [
    "PLACEHOLDER",
    "build_placeholders",
    "bind_ordered",
]
