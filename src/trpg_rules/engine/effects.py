"""Active effect suppression and application.

Effects live on the actor or are transferred from its items. An effect
granted by a weapon or piece of equipment is suppressed while that item
is not equipped. Changes from every active effect are applied together in
priority order (``mode * 10`` unless set).
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from trpg_rules.core.exceptions import FormulaError
from trpg_rules.core.logging import get_logger
from trpg_rules.engine.formulas import evaluate_formula
from trpg_rules.models.actor import Actor
from trpg_rules.models.base import get_property, has_property, is_numeric, set_property
from trpg_rules.models.effects import ActiveEffect, EffectChange
from trpg_rules.models.enums import EffectMode, ItemType
from trpg_rules.models.items import Item


logger = get_logger(__name__)

CustomHandler = Callable[[Actor, EffectChange, Any], Any]
"""Handler for ``CUSTOM`` changes: receives the actor, the change and the
current value and returns the new value."""

_EQUIPPABLE_TYPES: tuple[str, ...] = (ItemType.WEAPON, ItemType.EQUIPMENT)
_FLAG_PREFIX = "flags.trpg."


def actor_effects(actor: Actor) -> Iterator[tuple[ActiveEffect, Item | None]]:
    """Iterate the actor's effects with the item that grants each, if any.

    Item effects marked for transfer count as effects on the actor.
    """
    for effect in actor.effects:
        yield effect, actor.get_item(effect.origin_item_id)
    for item in actor.items:
        for effect in item.effects:
            if effect.transfer:
                yield effect, item


def determine_suppression(actor: Actor) -> None:
    """Suppress effects granted by unequipped weapons and equipment.

    Args:
        actor: The actor; effect ``suppressed`` flags are updated in place.
    """
    for effect, origin in actor_effects(actor):
        effect.suppressed = (
            origin is not None and origin.type in _EQUIPPABLE_TYPES and not origin.equipped
        )


def _target_path(key: str) -> str:
    if key.startswith(_FLAG_PREFIX):
        return "flags." + key[len(_FLAG_PREFIX) :]
    return key


def _cast_delta(actor: Actor, change: EffectChange, current: Any) -> Any:
    raw = change.value.strip()
    if isinstance(current, bool) or (current is None and raw.lower() in ("true", "false")):
        return raw.lower() in ("true", "1")
    if is_numeric(raw) and (current is None or isinstance(current, (int, float))):
        return float(raw)
    if isinstance(current, (int, float)):
        return evaluate_formula(raw, actor.get_roll_data())
    if isinstance(current, list):
        return raw
    return change.value


def _numeric(value: Any, current: Any) -> Any:
    if isinstance(current, int) and not isinstance(current, bool) and float(value).is_integer():
        return int(value)
    if current is None and isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def apply_change(
    actor: Actor,
    change: EffectChange,
    custom_handlers: Mapping[str, CustomHandler] | None = None,
) -> Any:
    """Apply one change to the actor.

    Args:
        actor: The actor; updated in place.
        change: The change.
        custom_handlers: Handlers for ``CUSTOM`` changes, by key.

    Returns:
        The value written, or None when the change was skipped.

    Raises:
        FormulaError: If a numeric change has a value that is not a
            number or a resolvable formula.
    """
    path = _target_path(change.key)
    if not has_property(actor, path) and not path.startswith("flags."):
        logger.warning("Active effect targets an unknown key", actor=actor.name, key=change.key)
        return None

    current = get_property(actor, path)
    mode = EffectMode(change.mode)

    if mode == EffectMode.CUSTOM:
        handler = (custom_handlers or {}).get(change.key)
        if handler is None:
            logger.debug("No handler for custom change", actor=actor.name, key=change.key)
            return None
        value = handler(actor, change, current)
        set_property(actor, path, value)
        return value

    delta = _cast_delta(actor, change, current)
    if mode == EffectMode.OVERRIDE:
        value = delta
    elif mode == EffectMode.ADD:
        if isinstance(current, list):
            value = [*current, delta]
        elif isinstance(current, str):
            value = current + str(delta)
        else:
            value = (current or 0) + delta
    elif mode == EffectMode.MULTIPLY:
        value = (current or 0) * delta
    elif mode == EffectMode.UPGRADE:
        value = delta if current is None else max(current, delta)
    else:
        value = delta if current is None else min(current, delta)

    if isinstance(value, float):
        value = _numeric(value, current)
    set_property(actor, path, value)
    return value


def apply_active_effects(
    actor: Actor,
    custom_handlers: Mapping[str, CustomHandler] | None = None,
) -> dict[str, Any]:
    """Apply every active effect's changes in priority order.

    A change that fails is logged and skipped; the other changes still
    apply.

    Args:
        actor: The actor; updated in place.
        custom_handlers: Handlers for ``CUSTOM`` changes, by key.

    Returns:
        The values written, by change key.
    """
    changes = [
        change
        for effect, _ in actor_effects(actor)
        if effect.is_active
        for change in effect.changes
    ]
    changes.sort(key=lambda change: change.effective_priority)

    overrides: dict[str, Any] = {}
    for change in changes:
        try:
            value = apply_change(actor, change, custom_handlers)
        except (FormulaError, ValueError, TypeError, KeyError) as exc:
            logger.warning("Active effect change failed", actor=actor.name, key=change.key, error=str(exc))
            continue
        if value is not None:
            overrides[change.key] = value
    return overrides


__all__ = [
    "CustomHandler",
    "actor_effects",
    "determine_suppression",
    "apply_change",
    "apply_active_effects",
]
