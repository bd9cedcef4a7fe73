"""Base model and dotted-path helpers shared by actor and item documents.

Documents arrive from the host with camelCase keys (``hitDiceUsed``,
``actionType``). Models expose snake_case attributes and accept either
spelling. Update data, active effect keys and formula references all
address values by dotted path; the helpers here resolve those paths
through nested models and plain dicts, accepting both field names and
aliases, with an optional leading ``system.`` segment.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


SYSTEM_PREFIX = "system."
DELETE_PREFIX = "-="

_MISSING = object()


class RulesModel(BaseModel):
    """Base class for every document model in the rules engine.

    Models are mutable: the preparation pipeline writes derived values in
    place, the way the host mutates its document data between hooks.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
        use_enum_values=True,
    )


def _strip_prefix(path: str) -> str:
    if path.startswith(SYSTEM_PREFIX):
        return path[len(SYSTEM_PREFIX) :]
    if path.startswith("data."):
        return path[len("data.") :]
    return path


def _field_name(model: BaseModel, key: str) -> str | None:
    """Map a field name or alias to the model's field name."""
    fields = type(model).model_fields
    if key in fields:
        return key
    for name, info in fields.items():
        if info.alias == key:
            return name
    return None


def _get_child(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key, _MISSING)
    if isinstance(obj, BaseModel):
        name = _field_name(obj, key)
        if name is not None:
            return getattr(obj, name)
        if not key.startswith("_") and isinstance(getattr(type(obj), key, None), property):
            return getattr(obj, key)
        return _MISSING
    if isinstance(obj, (list, tuple)) and key.isdigit():
        index = int(key)
        return obj[index] if index < len(obj) else _MISSING
    return _MISSING


def get_property(obj: Any, path: str, default: Any = None) -> Any:
    """Read a value by dotted path.

    Args:
        obj: A model, mapping or list to start from.
        path: Dotted path such as ``attributes.hp.value``.
        default: Value returned when any segment is missing.

    Returns:
        The resolved value, or ``default``.

    Example:
        >>> get_property(actor, "system.abilities.dex.mod")
        2
    """
    current = obj
    for key in _strip_prefix(path).split("."):
        if current is None:
            return default
        current = _get_child(current, key)
        if current is _MISSING:
            return default
    return current


def has_property(obj: Any, path: str) -> bool:
    """Check whether a dotted path resolves to a value (None included)."""
    current = obj
    for key in _strip_prefix(path).split("."):
        current = _get_child(current, key)
        if current is _MISSING:
            return False
    return True


def set_property(obj: Any, path: str, value: Any) -> None:
    """Write a value by dotted path.

    Intermediate dict entries are created as needed; intermediate model
    fields must already exist. A final segment starting with ``-=``
    deletes the key from its parent mapping.

    Args:
        obj: A model or mutable mapping to start from.
        path: Dotted path such as ``attributes.hp.value``.
        value: The value to assign.

    Raises:
        KeyError: If an intermediate model field does not exist.
    """
    keys = _strip_prefix(path).split(".")
    parent = obj
    for key in keys[:-1]:
        child = _get_child(parent, key)
        if child is _MISSING or child is None:
            if not isinstance(parent, MutableMapping):
                raise KeyError(f"Cannot traverse '{key}' in path '{path}'")
            child = {}
            parent[key] = child
        parent = child

    last = keys[-1]
    if last.startswith(DELETE_PREFIX):
        if isinstance(parent, MutableMapping):
            parent.pop(last[len(DELETE_PREFIX) :], None)
        return

    if isinstance(parent, MutableMapping):
        parent[last] = value
    elif isinstance(parent, BaseModel):
        name = _field_name(parent, last)
        if name is None:
            raise KeyError(f"Unknown field '{last}' in path '{path}'")
        setattr(parent, name, value)
    else:
        raise KeyError(f"Cannot assign '{last}' in path '{path}'")


def apply_update_data(obj: Any, updates: Mapping[str, Any]) -> None:
    """Apply a flat mapping of dotted paths to values.

    Args:
        obj: The document to update.
        updates: Mapping of dotted path to new value.
    """
    for path, value in updates.items():
        set_property(obj, path, value)


def is_numeric(value: Any) -> bool:
    """Check whether a value is a finite number or a numeric string."""
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return value == value and value not in (float("inf"), float("-inf"))
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return False
        return number == number and abs(number) != float("inf")
    return False


def to_int(value: Any, default: int = 0) -> int:
    """Convert a numeric value or string to int, truncating towards zero.

    Non-numeric values yield ``default``.
    """
    if not is_numeric(value):
        return default
    return int(float(value))


__all__ = [
    "RulesModel",
    "get_property",
    "has_property",
    "set_property",
    "apply_update_data",
    "is_numeric",
    "to_int",
]
