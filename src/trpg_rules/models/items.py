"""Item document models.

One ``Item`` model covers every item type. Blocks that only matter for
some types (armor for equipment, hit dice for classes, preparation for
spells) are always present with neutral defaults, matching the shape of
the host documents where optional data is simply left empty.

Example:
    >>> sword = Item(name="Espada Longa", type="weapon", weapon_type="martialM",
    ...              action_type="mwak", damage={"parts": [["1d8 + @mod", "slashing"]]})
    >>> sword.has_attack
    True
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import Field, field_validator

from trpg_rules.core.constants import ARMOR_TYPES, PHYSICAL_ITEM_TYPES
from trpg_rules.models.base import RulesModel, is_numeric
from trpg_rules.models.effects import ActiveEffect
from trpg_rules.models.enums import ActionType, ItemType


ATTACK_ACTION_TYPES: tuple[str, ...] = (
    ActionType.MELEE_WEAPON_ATTACK,
    ActionType.RANGED_WEAPON_ATTACK,
    ActionType.MELEE_SPELL_ATTACK,
    ActionType.RANGED_SPELL_ATTACK,
)


def _new_id() -> str:
    return uuid4().hex[:16]


# =============================================================================
# Item Blocks
# =============================================================================


class ItemUses(RulesModel):
    """Limited uses of an item.

    Attributes:
        value: Uses remaining.
        max: Maximum uses, a number or a formula such as ``@details.level``.
        per: Recovery period (``sr``, ``lr``, ``day``, ``charges``).
        max_formula: Formula a derived maximum was evaluated from.
    """

    value: int | None = None
    max: int | str | None = None
    per: str | None = None
    max_formula: str | None = Field(default=None, exclude=True)

    @field_validator("max", mode="before")
    @classmethod
    def normalize_max(cls, value: Any) -> int | str | None:
        """Keep numeric maxima as numbers and formulas as strings."""
        if value is None or value == "":
            return None
        if is_numeric(value):
            return int(float(value))
        return str(value)

    @property
    def numeric_max(self) -> int | None:
        """Get the maximum when it is already a number."""
        return self.max if isinstance(self.max, int) else None


class Recharge(RulesModel):
    """Recharge on a d6 roll of ``value`` or higher."""

    value: int | None = None
    charged: bool = True


class ArmorData(RulesModel):
    """Armor block of an equipment item.

    Attributes:
        type: Equipment type (light, medium, heavy, natural, shield, ...).
        value: Armor bonus.
        dex: Cap on the DEX modifier added to armor class.
    """

    type: str | None = None
    value: int = 0
    dex: int | None = None


class DamageData(RulesModel):
    """Damage parts as (formula, damage type) pairs."""

    parts: list[tuple[str, str]] = Field(default_factory=list)
    versatile: str = ""

    @field_validator("parts", mode="before")
    @classmethod
    def pad_parts(cls, value: Any) -> Any:
        """Accept parts stored without a damage type."""
        if not isinstance(value, list):
            return value
        padded = []
        for part in value:
            if isinstance(part, str):
                padded.append((part, ""))
            elif isinstance(part, (list, tuple)) and len(part) == 1:
                padded.append((part[0], ""))
            else:
                padded.append(part)
        return padded


class ItemSave(RulesModel):
    """Saving throw an item forces.

    Attributes:
        ability: Save the target rolls.
        dc: Difficulty, derived unless scaling is ``flat``.
        scaling: ``spell``, ``flat`` or an ability id.
    """

    ability: str | None = None
    dc: int | None = None
    scaling: str = "spell"


class SpellPreparation(RulesModel):
    """How a spell is made available and whether it is prepared."""

    mode: str = "prepared"
    prepared: bool = False


class ConsumeTarget(RulesModel):
    """Resource consumed when the item is used.

    Attributes:
        type: ``ammo``, ``attribute``, ``material`` or ``charges``.
        target: Item id, or an actor data path for attributes.
        amount: Quantity consumed.
    """

    type: str | None = None
    target: str | None = None
    amount: int | None = None


class DamageScaling(RulesModel):
    """How spell damage grows with caster or slot level.

    Attributes:
        mode: ``none``, ``cantrip`` or ``level``.
        formula: Formula added per step; cantrips default to the base damage.
    """

    mode: str = "none"
    formula: str = ""


# =============================================================================
# Item
# =============================================================================


class Item(RulesModel):
    """An item embedded in an actor: equipment, weapon, spell, class, feat.

    Attributes:
        id: Document identifier.
        name: Display name.
        type: Item type.
        quantity: Units carried.
        weight: Weight per unit.
        equipped: Worn or wielded.
        proficient: Proficiency with the item; None means unspecified.
        armor: Armor block for equipment.
        stealth: Armor penalty contributed while equipped.
        levels: Class levels.
        hit_dice: Class hit die such as ``d8``.
        hit_dice_used: Class hit dice spent.
        bab: Class base attack progression.
        spellcasting: Class spell progression.
        uses: Limited uses.
        recharge: Recharge mechanic.
        action_type: What the item does when used.
        ability: Explicit ability override for rolls.
        attack_bonus: Flat or formula attack bonus.
        damage: Damage parts.
        save: Saving throw.
        level: Spell level.
        school: Spell school.
        preparation: Spell preparation.
        scaling: Spell damage scaling.
        consume: Consumed resource.
        weapon_type: Weapon category.
        consumable_type: Consumable category (``ammo`` for ammunition).
        properties: Weapon properties such as ``fin`` (finesse).
        formula: Free-form roll formula.
        effects: Active effects granted by the item.
        labels: Display values computed during preparation.
    """

    id: str = Field(default_factory=_new_id, alias="_id")
    name: str = ""
    type: ItemType

    quantity: int = 1
    weight: float = 0.0
    equipped: bool = False
    proficient: bool | None = None

    armor: ArmorData = Field(default_factory=ArmorData)
    stealth: int = 0

    levels: int = 1
    hit_dice: str = "d6"
    hit_dice_used: int = 0
    bab: str = "med"
    spellcasting: str = "none"

    uses: ItemUses = Field(default_factory=ItemUses)
    recharge: Recharge = Field(default_factory=Recharge)
    action_type: str | None = None
    ability: str | None = None
    attack_bonus: str = ""
    damage: DamageData = Field(default_factory=DamageData)
    save: ItemSave = Field(default_factory=ItemSave)

    level: int = 0
    school: str = ""
    preparation: SpellPreparation = Field(default_factory=SpellPreparation)
    scaling: DamageScaling = Field(default_factory=DamageScaling)

    consume: ConsumeTarget = Field(default_factory=ConsumeTarget)
    weapon_type: str | None = None
    consumable_type: str | None = None
    properties: dict[str, bool] = Field(default_factory=dict)
    formula: str = ""

    effects: list[ActiveEffect] = Field(default_factory=list)
    labels: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @field_validator("attack_bonus", mode="before")
    @classmethod
    def stringify_attack_bonus(cls, value: Any) -> str:
        """Store attack bonuses as formula strings."""
        if value is None:
            return ""
        return str(value)

    @field_validator("quantity", "stealth", "hit_dice_used", mode="before")
    @classmethod
    def default_empty_numbers(cls, value: Any) -> Any:
        """Treat missing counters as zero."""
        return 0 if value is None or value == "" else value

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Item:
        """Build an item from a host document with a nested ``system`` block.

        Args:
            document: Host item data (``_id``, ``name``, ``type``, ``system``,
                ``effects``).

        Returns:
            The item model.
        """
        data = dict(document.get("system") or {})
        for key in ("_id", "id", "name", "type", "effects"):
            if key in document:
                data[key] = document[key]
        return cls.model_validate(data)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def is_physical(self) -> bool:
        """Check whether the item has weight and quantity."""
        return self.type in PHYSICAL_ITEM_TYPES

    @property
    def has_attack(self) -> bool:
        """Check whether using the item makes an attack roll."""
        return self.action_type in ATTACK_ACTION_TYPES

    @property
    def has_damage(self) -> bool:
        """Check whether the item rolls damage."""
        return bool(self.damage.parts)

    @property
    def is_versatile(self) -> bool:
        """Check whether the item has a versatile damage formula."""
        return self.has_damage and bool(self.damage.versatile)

    @property
    def is_healing(self) -> bool:
        """Check whether the item heals instead of dealing damage."""
        return self.action_type == ActionType.HEAL and bool(self.damage.parts)

    @property
    def has_save(self) -> bool:
        """Check whether the item forces a saving throw."""
        return bool(self.save.ability and self.save.scaling)

    @property
    def has_limited_uses(self) -> bool:
        """Check whether the item is limited by charges or by recharge."""
        if self.recharge.value:
            return True
        uses_max = self.uses.max
        if isinstance(uses_max, str):
            return bool(self.uses.per)
        return bool(self.uses.per and uses_max and uses_max > 0)

    @property
    def is_armor(self) -> bool:
        """Check whether the item is body armor (shields excluded)."""
        return (
            self.type == ItemType.EQUIPMENT
            and self.armor.type in ARMOR_TYPES
            and self.armor.type != "shield"
        )

    @property
    def is_shield(self) -> bool:
        """Check whether the item is a shield."""
        return self.type == ItemType.EQUIPMENT and self.armor.type == "shield"

    @property
    def hit_die_faces(self) -> int:
        """Get the number of faces of a class hit die (0 if malformed)."""
        try:
            return int(self.hit_dice[1:])
        except (ValueError, IndexError):
            return 0

    @property
    def slug(self) -> str:
        """Get the identifier used for the item under ``@classes``."""
        return "-".join(self.name.strip().lower().split())


__all__ = [
    "ATTACK_ACTION_TYPES",
    "ItemUses",
    "Recharge",
    "ArmorData",
    "DamageData",
    "ItemSave",
    "SpellPreparation",
    "ConsumeTarget",
    "DamageScaling",
    "Item",
]
