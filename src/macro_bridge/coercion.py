"""
Typed value coercion for expression results.

Both evaluators hand their raw outcome to coerce_value() so that callers asking
for a specific Python type get that type back regardless of which syntax
produced the value.

Rules:
    - object, Any or None as target: value passes through untouched
    - str target: any value converted to text (booleans as "true"/"false")
    - everything else: pydantic lax validation (e.g. "42" -> 42, "yes" -> True)

Examples:
    coerce_value("42", int) -> 42
    coerce_value("true", bool) -> True
    coerce_value(42, str) -> "42"
    coerce_value("[1, 2]", list[int]) -> ValueError (no JSON parsing)
"""

from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError

PASS_THROUGH_TYPES: tuple[Any, ...] = (object, Any, None)


@lru_cache(maxsize=256)
def _cached_adapter(target_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target_type)


def _adapter_for(target_type: Any) -> TypeAdapter[Any]:
    try:
        return _cached_adapter(target_type)
    except TypeError:
        # Unhashable type expressions cannot be cached
        return TypeAdapter(target_type)


def is_pass_through(target_type: Any) -> bool:
    """Return True when target_type requests no coercion at all."""
    return any(target_type is candidate for candidate in PASS_THROUGH_TYPES)


def coerce_value(value: Any, target_type: Any = object) -> Any:
    """
    Coerce a value to the requested type.

    Args:
        value: Value produced by an evaluator
        target_type: Requested Python type or typing construct

    Returns:
        Value converted to target_type

    Raises:
        ValueError: If value cannot be coerced to target_type
    """
    if is_pass_through(target_type) or value is None:
        return value

    if target_type is str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    if isinstance(target_type, type) and type(value) is target_type:
        return value

    try:
        return _adapter_for(target_type).validate_python(value)
    except ValidationError as e:
        type_name = getattr(target_type, "__name__", repr(target_type))
        raise ValueError(
            f"Cannot coerce {type(value).__name__} to {type_name}: {value!r} "
            f"({e.error_count()} validation error(s))"
        ) from e


__all__ = ["coerce_value", "is_pass_through"]
