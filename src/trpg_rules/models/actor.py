"""Actor document models.

An ``Actor`` holds the system data of a player character or NPC: ability
scores, saves, skills, attributes, details and traits, plus its embedded
items and active effects. Fields marked derived are recomputed by
``trpg_rules.engine.preparation.prepare_actor`` and are safe to ignore
when building an actor by hand.

Example:
    >>> hero = Actor(name="Valeria", type="character")
    >>> hero.abilities["str"].value = 16
    >>> hero.skills["ath"].ability
    'str'
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from pydantic import Field, field_validator

from trpg_rules.core.constants import SPELL_SLOT_LEVELS
from trpg_rules.models.base import RulesModel, get_property, is_numeric, to_int
from trpg_rules.models.effects import ActiveEffect
from trpg_rules.models.enums import Ability, ActorType, ItemType, SaveId, SkillId
from trpg_rules.models.items import Item


def _new_id() -> str:
    return uuid4().hex[:16]


def _zero_if_empty(value: Any) -> Any:
    return 0 if value is None or value == "" else value


# =============================================================================
# Abilities, Saves and Skills
# =============================================================================


class AbilityScore(RulesModel):
    """An ability score with its derived modifier, check bonus and DC."""

    value: int = 10
    mod: int = 0
    check_bonus: int = 0
    dc: int = 10


class SaveData(RulesModel):
    """A saving throw (Fortitude, Reflex, Will).

    Attributes:
        ability: Ability the save is keyed to.
        proficient: Trained in the save.
        mod: Derived ability modifier.
        prof: Derived training bonus.
        save_bonus: Derived global save bonus.
        save: Derived total.
    """

    ability: str
    proficient: bool = False
    mod: int = 0
    prof: int = 0
    save_bonus: int = 0
    save: int = 0


class SkillData(RulesModel):
    """A trainable skill.

    Attributes:
        ability: Ability the skill is keyed to.
        value: Training (0 untrained, 0.5 half, 1 trained, 2 expert).
        pda: Armor penalty applies to the skill.
        mod: Derived ability modifier.
        prof: Derived training bonus.
        bonus: Derived global check and skill bonus.
        total: Derived total.
    """

    ability: str
    value: float = 0
    pda: bool = False
    mod: int = 0
    prof: int = 0
    bonus: int = 0
    total: int = 0

    @field_validator("value", mode="before")
    @classmethod
    def default_value(cls, value: Any) -> Any:
        """Treat missing training as untrained."""
        return _zero_if_empty(value)


def default_abilities() -> dict[str, AbilityScore]:
    """Build the seven ability scores at 10."""
    return {ability.value: AbilityScore() for ability in Ability}


def default_saves() -> dict[str, SaveData]:
    """Build the three saves keyed to their usual abilities."""
    return {save.value: SaveData(ability=save.default_ability) for save in SaveId}


def default_skills() -> dict[str, SkillData]:
    """Build every skill, untrained, keyed to its usual ability."""
    return {
        skill.value: SkillData(ability=skill.default_ability, pda=skill.armor_penalty_applies)
        for skill in SkillId
    }


def _merge_defaults(value: Any, defaults: dict[str, dict[str, Any]]) -> Any:
    """Overlay document entries on default entries, keeping unknown keys."""
    if not isinstance(value, Mapping):
        return value
    merged: dict[str, Any] = {key: dict(entry) for key, entry in defaults.items()}
    for key, entry in value.items():
        merged[key] = {**merged.get(key, {}), **entry} if isinstance(entry, Mapping) else entry
    return merged


# =============================================================================
# Attributes
# =============================================================================


class ResourcePool(RulesModel):
    """A depletable pool such as hit points or magic points."""

    value: int = 0
    max: int = 0
    temp: int = 0
    tempmax: int = 0

    @field_validator("value", "max", "temp", "tempmax", mode="before")
    @classmethod
    def default_empty(cls, value: Any) -> Any:
        """Treat missing pool values as zero."""
        return _zero_if_empty(value)

    @property
    def effective_max(self) -> int:
        """Get the maximum including temporary maximum."""
        return self.max + self.tempmax


class ArmorClass(RulesModel):
    """Armor class configuration and derived components.

    Attributes:
        calc: Calculation strategy (flat, natural, default, custom).
        flat: Value used by the flat and natural strategies.
        formula: Formula used by the custom strategy.
        base: Derived base before shield and bonuses.
        shield: Derived shield bonus.
        bonus: Bonus, usually set by active effects.
        cover: Cover bonus.
        dex: Derived DEX contribution under the default strategy.
        value: Derived total.
        warnings: Localization keys raised while computing the value.
    """

    calc: str = "default"
    flat: int | None = None
    formula: str = ""
    base: int = 10
    shield: int = 0
    bonus: int = 0
    cover: int = 0
    dex: int = 0
    value: int | None = None
    warnings: list[str] = Field(default_factory=list)


class BaseAttackBonus(RulesModel):
    """Base attack bonus (derived for characters)."""

    value: int = 0
    total: int = 0


class Encumbrance(RulesModel):
    """Derived carried weight and capacity."""

    value: float = 0.0
    max: float = 0.0
    pct: float = 0.0
    encumbered: bool = False


class DeathSaves(RulesModel):
    """Death saving throw counters."""

    success: int = 0
    failure: int = 0


class Initiative(RulesModel):
    """Initiative bonus added to the initiative roll."""

    bonus: int = 0


class Attributes(RulesModel):
    """Combat and resource attributes.

    Attributes:
        hp: Hit points.
        mp: Magic points (pontos de mana).
        ac: Armor class.
        bab: Base attack bonus.
        death: Death save counters.
        init: Initiative.
        spellcasting: Spellcasting ability id.
        prof: Derived proficiency bonus.
        hd: Derived available hit dice.
        armor_penalty: Derived armor penalty from equipped gear.
        spelldc: Derived spell save DC.
        encumbrance: Derived encumbrance.
    """

    hp: ResourcePool = Field(default_factory=ResourcePool)
    mp: ResourcePool = Field(default_factory=ResourcePool)
    ac: ArmorClass = Field(default_factory=ArmorClass)
    bab: BaseAttackBonus = Field(default_factory=BaseAttackBonus)
    death: DeathSaves = Field(default_factory=DeathSaves)
    init: Initiative = Field(default_factory=Initiative)
    spellcasting: str | None = None
    prof: int = 2
    hd: int = 0
    armor_penalty: int = Field(default=0, alias="penalidadeArmadura")
    spelldc: int = 10
    encumbrance: Encumbrance = Field(default_factory=Encumbrance)

    @field_validator("spellcasting", mode="before")
    @classmethod
    def empty_spellcasting(cls, value: Any) -> Any:
        """Store an unset spellcasting ability as None."""
        return value or None


# =============================================================================
# Details and Traits
# =============================================================================


class Experience(RulesModel):
    """Experience points and progress towards the next level."""

    value: int = 0
    min: int = 0
    max: int = 0
    pct: int = 0


class Details(RulesModel):
    """Character or NPC details.

    Attributes:
        level: Character level (derived from classes for characters).
        half_level: Derived half level.
        xp: Experience.
        cr: NPC challenge rating.
        spell_level: NPC caster level.
        original_class: Id of the original class item; when missing it is
            set to the class with the most levels.
    """

    level: int = 0
    half_level: int = 0
    xp: Experience = Field(default_factory=Experience)
    cr: float = 0
    spell_level: int | None = None
    original_class: str = ""

    @field_validator("spell_level", mode="before")
    @classmethod
    def non_numeric_spell_level(cls, value: Any) -> Any:
        """Store a blank or non-numeric caster level as None."""
        return int(float(value)) if is_numeric(value) else None

    @field_validator("level", "cr", mode="before")
    @classmethod
    def default_empty(cls, value: Any) -> Any:
        """Treat missing level and CR as zero."""
        return _zero_if_empty(value)


class Proficiencies(RulesModel):
    """Armor or weapon proficiency keys plus free text."""

    value: list[str] = Field(default_factory=list)
    custom: str = ""


class Traits(RulesModel):
    """Size and proficiencies."""

    size: str = "med"
    armor_prof: Proficiencies = Field(default_factory=Proficiencies)
    weapon_prof: Proficiencies = Field(default_factory=Proficiencies)


class CurrencyPurse(RulesModel):
    """Coins carried, by denomination."""

    pp: int = 0
    gp: int = 0
    sp: int = 0
    cp: int = 0

    @field_validator("pp", "gp", "sp", "cp", mode="before")
    @classmethod
    def default_empty(cls, value: Any) -> Any:
        """Treat missing piles as zero."""
        return _zero_if_empty(value)


class Resource(RulesModel):
    """A named resource that may refill on a short or long rest."""

    label: str = ""
    value: float | None = None
    max: float | None = None
    sr: bool = False
    lr: bool = False

    @field_validator("value", "max", mode="before")
    @classmethod
    def non_numeric_to_none(cls, value: Any) -> Any:
        """Store blank values as None."""
        return float(value) if is_numeric(value) else None


class SpellSlot(RulesModel):
    """Spell slots of one level.

    Attributes:
        value: Slots remaining; None until first computed.
        max: Derived maximum from the slot table.
        override: Manual maximum replacing the table value.
    """

    value: int | None = None
    max: int = 0
    override: int | None = None

    @field_validator("value", "override", mode="before")
    @classmethod
    def non_numeric_to_none(cls, value: Any) -> Any:
        """Store blank values as None."""
        return int(float(value)) if is_numeric(value) else None


def default_resources() -> dict[str, Resource]:
    """Build the primary, secondary and tertiary resources."""
    return {key: Resource() for key in ("primary", "secondary", "tertiary")}


def default_spells() -> dict[str, SpellSlot]:
    """Build spell slots spell0 through spell9."""
    return {f"spell{level}": SpellSlot() for level in range(SPELL_SLOT_LEVELS)}


# =============================================================================
# Bonuses
# =============================================================================


def _stringify(value: Any) -> str:
    return "" if value is None else str(value)


class AbilityBonuses(RulesModel):
    """Global bonuses to ability checks, saves and skills (formula strings)."""

    check: str = ""
    save: str = ""
    skill: str = ""

    @field_validator("check", "save", "skill", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> str:
        """Store numeric bonuses as strings."""
        return _stringify(value)


class SpellBonuses(RulesModel):
    """Global bonus to spell save DC."""

    dc: str = ""

    @field_validator("dc", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> str:
        """Store a numeric bonus as a string."""
        return _stringify(value)


class AttackBonuses(RulesModel):
    """Global attack and damage bonuses for one action type."""

    attack: str = ""
    damage: str = ""

    @field_validator("attack", "damage", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> str:
        """Store numeric bonuses as strings."""
        return _stringify(value)


class Bonuses(RulesModel):
    """Global actor bonuses."""

    abilities: AbilityBonuses = Field(default_factory=AbilityBonuses)
    spell: SpellBonuses = Field(default_factory=SpellBonuses)
    mwak: AttackBonuses = Field(default_factory=AttackBonuses)
    rwak: AttackBonuses = Field(default_factory=AttackBonuses)
    msak: AttackBonuses = Field(default_factory=AttackBonuses)
    rsak: AttackBonuses = Field(default_factory=AttackBonuses)


def numeric_bonus(value: Any) -> int:
    """Parse a bonus that only counts when it is a plain number."""
    return to_int(value) if is_numeric(value) else 0


# =============================================================================
# Actor
# =============================================================================


SYSTEM_FIELDS: tuple[str, ...] = (
    "abilities",
    "saves",
    "skills",
    "attributes",
    "details",
    "traits",
    "currency",
    "resources",
    "spells",
    "bonuses",
)


class Actor(RulesModel):
    """A player character or NPC.

    Attributes:
        id: Document identifier.
        name: Display name.
        type: ``character`` or ``npc``.
        abilities: Ability scores keyed by ability id.
        saves: Saves keyed by save id.
        skills: Skills keyed by skill id.
        attributes: Combat and resource attributes.
        details: Level, experience and challenge rating.
        traits: Size and proficiencies.
        currency: Coins carried.
        resources: Named resources.
        spells: Spell slots keyed ``spell0`` to ``spell9``.
        bonuses: Global bonuses.
        flags: Feature flags such as ``diamondSoul`` or ``acr.skill-bonus``.
        items: Embedded items.
        effects: Active effects on the actor.
        preparation_warnings: Warnings raised by the last preparation.
    """

    id: str = Field(default_factory=_new_id, alias="_id")
    name: str = ""
    type: ActorType = ActorType.CHARACTER

    abilities: dict[str, AbilityScore] = Field(default_factory=default_abilities)
    saves: dict[str, SaveData] = Field(default_factory=default_saves)
    skills: dict[str, SkillData] = Field(default_factory=default_skills)
    attributes: Attributes = Field(default_factory=Attributes)
    details: Details = Field(default_factory=Details)
    traits: Traits = Field(default_factory=Traits)
    currency: CurrencyPurse = Field(default_factory=CurrencyPurse)
    resources: dict[str, Resource] = Field(default_factory=default_resources)
    spells: dict[str, SpellSlot] = Field(default_factory=default_spells)
    bonuses: Bonuses = Field(default_factory=Bonuses)
    flags: dict[str, Any] = Field(default_factory=dict)

    items: list[Item] = Field(default_factory=list)
    effects: list[ActiveEffect] = Field(default_factory=list)
    preparation_warnings: list[str] = Field(default_factory=list, exclude=True)

    @field_validator("saves", mode="before")
    @classmethod
    def fill_saves(cls, value: Any) -> Any:
        """Add missing saves and key partial entries to their usual ability."""
        return _merge_defaults(value, {save.value: {"ability": save.default_ability.value} for save in SaveId})

    @field_validator("skills", mode="before")
    @classmethod
    def fill_skills(cls, value: Any) -> Any:
        """Add missing skills and key partial entries to their usual ability."""
        return _merge_defaults(
            value,
            {
                skill.value: {"ability": skill.default_ability.value, "pda": skill.armor_penalty_applies}
                for skill in SkillId
            },
        )

    @field_validator("abilities", mode="after")
    @classmethod
    def fill_abilities(cls, value: dict[str, AbilityScore]) -> dict[str, AbilityScore]:
        """Add any ability missing from the document at 10."""
        for ability in Ability:
            value.setdefault(ability.value, AbilityScore())
        return value

    @field_validator("spells", mode="after")
    @classmethod
    def fill_spells(cls, value: dict[str, SpellSlot]) -> dict[str, SpellSlot]:
        """Add any spell slot level missing from the document."""
        for level in range(SPELL_SLOT_LEVELS):
            value.setdefault(f"spell{level}", SpellSlot())
        return value

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Actor:
        """Build an actor from a host document.

        The host nests system data under ``system`` and feature flags under
        ``flags.trpg``; embedded items carry their own ``system`` block.

        Args:
            document: Host actor data.

        Returns:
            The actor model.
        """
        data = dict(document.get("system") or {})
        for key in ("_id", "id", "name", "type", "effects"):
            if key in document:
                data[key] = document[key]
        data["flags"] = dict((document.get("flags") or {}).get("trpg") or {})
        data["items"] = [
            Item.from_document(item) if "system" in item else item
            for item in document.get("items") or []
        ]
        return cls.model_validate(data)

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    @property
    def is_npc(self) -> bool:
        """Check whether the actor is an NPC."""
        return self.type == ActorType.NPC

    def get_item(self, item_id: str | None) -> Item | None:
        """Find an embedded item by id.

        Args:
            item_id: Item identifier.

        Returns:
            The item, or None if not owned.
        """
        if not item_id:
            return None
        return next((item for item in self.items if item.id == item_id), None)

    def items_of_type(self, item_type: ItemType | str) -> list[Item]:
        """List embedded items of one type, in document order."""
        return [item for item in self.items if item.type == item_type]

    @property
    def item_types(self) -> dict[str, list[Item]]:
        """Group embedded items by type."""
        grouped: dict[str, list[Item]] = {item_type.value: [] for item_type in ItemType}
        for item in self.items:
            grouped.setdefault(item.type, []).append(item)
        return grouped

    @property
    def classes(self) -> dict[str, Item]:
        """Map class slugs to class items."""
        return {item.slug: item for item in self.items_of_type(ItemType.CLASS)}

    # -------------------------------------------------------------------------
    # Flags and Roll Data
    # -------------------------------------------------------------------------

    def get_flag(self, key: str, default: Any = None) -> Any:
        """Read a feature flag.

        Flags may be stored flat (``{"acr.skill-bonus": 2}``) or nested
        (``{"acr": {"skill-bonus": 2}}``); both spellings resolve.

        Args:
            key: Flag key.
            default: Value returned when the flag is not set.

        Returns:
            The flag value.
        """
        if key in self.flags:
            return self.flags[key]
        value = get_property(self.flags, key)
        return default if value is None else value

    def get_roll_data(self) -> dict[str, Any]:
        """Build the data formulas resolve ``@`` references against.

        Returns:
            System data plus ``prof`` and ``classes``.
        """
        data: dict[str, Any] = {name: getattr(self, name) for name in SYSTEM_FIELDS}
        data["flags"] = self.flags
        data["prof"] = self.attributes.prof or 0
        data["classes"] = self.classes
        return data


__all__ = [
    "AbilityScore",
    "SaveData",
    "SkillData",
    "ResourcePool",
    "ArmorClass",
    "BaseAttackBonus",
    "Encumbrance",
    "DeathSaves",
    "Initiative",
    "Attributes",
    "Experience",
    "Details",
    "Proficiencies",
    "Traits",
    "CurrencyPurse",
    "Resource",
    "SpellSlot",
    "AbilityBonuses",
    "SpellBonuses",
    "AttackBonuses",
    "Bonuses",
    "Actor",
    "SYSTEM_FIELDS",
    "default_abilities",
    "default_saves",
    "default_skills",
    "default_resources",
    "default_spells",
    "numeric_bonus",
]
