"""Active effect models.

An active effect is a named bundle of changes, each addressing one actor
value by dotted path. Effects either live on the actor or on an owned
item; item effects follow the item, so unequipping the item suppresses
them.
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import Field, field_validator

from trpg_rules.models.base import RulesModel
from trpg_rules.models.enums import EffectMode


def _new_id() -> str:
    return uuid4().hex[:16]


class EffectChange(RulesModel):
    """A single change applied by an active effect.

    Attributes:
        key: Dotted path of the actor value (``system.`` prefix optional).
        mode: How the value combines with the current one.
        value: Raw value as stored by the host (always a string there).
        priority: Application order; defaults to ``mode * 10``.
    """

    key: str
    mode: EffectMode = EffectMode.ADD
    value: str = ""
    priority: int | None = None

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, value: Any) -> str:
        """Store numbers and booleans the way the host serializes them."""
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    @property
    def effective_priority(self) -> int:
        """Get the priority used to order changes."""
        if self.priority is not None:
            return self.priority
        return int(self.mode) * 10


class ActiveEffect(RulesModel):
    """A modifier object adding to or overriding derived attributes.

    Attributes:
        id: Document identifier.
        label: Display name.
        changes: Changes applied in priority order.
        disabled: Turned off by the user.
        origin: Identifier of the item that grants the effect, if any.
        transfer: Whether an item effect applies to its owner.
        suppressed: Set during preparation when the origin item is
            unequipped.
    """

    id: str = Field(default_factory=_new_id, alias="_id")
    label: str = ""
    changes: list[EffectChange] = Field(default_factory=list)
    disabled: bool = False
    origin: str | None = None
    transfer: bool = True
    suppressed: bool = Field(default=False, exclude=True)

    @property
    def is_active(self) -> bool:
        """Check whether the effect currently applies."""
        return not (self.disabled or self.suppressed)

    @property
    def origin_item_id(self) -> str | None:
        """Extract the item id from an origin such as ``Actor.abc.Item.xyz``."""
        if not self.origin:
            return None
        parts = self.origin.split(".")
        if "Item" in parts:
            index = parts.index("Item")
            if index + 1 < len(parts):
                return parts[index + 1]
            return None
        return parts[-1]


__all__ = [
    "EffectChange",
    "ActiveEffect",
]
