"""Enumeration types for the Tormenta RPG rules engine.

Values are the short identifiers stored in actor and item documents, so
an enum member compares equal to the raw string the host hands over.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class Ability(StrEnum):
    """The seven ability scores. Honra (HON) is particular to the ruleset."""

    STR = "str"
    DEX = "dex"
    CON = "con"
    INT = "int"
    WIS = "wis"
    CHA = "cha"
    HON = "hon"


class SaveId(StrEnum):
    """Saving throws and their default abilities."""

    FORTITUDE = "fortitude"
    REFLEX = "reflex"
    WILL = "will"

    @property
    def default_ability(self) -> Ability:
        """Get the ability a save uses unless the document overrides it.

        Returns:
            CON for Fortitude, DEX for Reflex, WIS for Will.
        """
        return {
            SaveId.FORTITUDE: Ability.CON,
            SaveId.REFLEX: Ability.DEX,
            SaveId.WILL: Ability.WIS,
        }[self]


class SkillId(StrEnum):
    """Trainable skills (Portuguese names in comments)."""

    ACR = "acr"  # Acrobacia
    ANI = "ani"  # Adestrar Animais
    ATH = "ath"  # Atletismo
    ATU = "atu"  # Atuação
    CAV = "cav"  # Cavalgar
    CON_ARC = "conArc"  # Conhecimento (Arcanismo)
    CON_ENG = "conEng"  # Conhecimento (Engenharia)
    CON_GEO = "conGeo"  # Conhecimento (Geografia)
    CON_HIS = "conHis"  # Conhecimento (História)
    CON_NAT = "conNat"  # Conhecimento (Natureza)
    CON_NOB = "conNob"  # Conhecimento (Nobreza)
    CON_REL = "conRel"  # Conhecimento (Religião)
    CON_TOR = "conTor"  # Conhecimento (Tormenta)
    CUR = "cur"  # Cura
    DIP = "dip"  # Diplomacia
    ENG = "eng"  # Enganação
    FUR = "fur"  # Furtividade
    IDE = "ide"  # Identificar Magia
    INIT = "init"  # Iniciativa
    INTI = "inti"  # Intimidação
    INTU = "intu"  # Intuição
    LAD = "lad"  # Ladinagem
    OBINF = "obinf"  # Obter Informação
    OFI = "ofi"  # Ofício
    PRC = "prc"  # Percepção
    SUR = "sur"  # Sobrevivência

    @property
    def default_ability(self) -> Ability:
        """Get the ability a new skill entry is keyed to.

        Returns:
            The skill's key ability.
        """
        return _SKILL_ABILITIES[self]

    @property
    def armor_penalty_applies(self) -> bool:
        """Check whether armor penalty applies to a new skill entry.

        Returns:
            True for the physical skills hampered by heavy armor.
        """
        return self in _ARMOR_PENALTY_SKILLS


_SKILL_ABILITIES: dict[SkillId, Ability] = {
    SkillId.ACR: Ability.DEX,
    SkillId.ANI: Ability.CHA,
    SkillId.ATH: Ability.STR,
    SkillId.ATU: Ability.CHA,
    SkillId.CAV: Ability.DEX,
    SkillId.CON_ARC: Ability.INT,
    SkillId.CON_ENG: Ability.INT,
    SkillId.CON_GEO: Ability.INT,
    SkillId.CON_HIS: Ability.INT,
    SkillId.CON_NAT: Ability.INT,
    SkillId.CON_NOB: Ability.INT,
    SkillId.CON_REL: Ability.INT,
    SkillId.CON_TOR: Ability.INT,
    SkillId.CUR: Ability.WIS,
    SkillId.DIP: Ability.CHA,
    SkillId.ENG: Ability.CHA,
    SkillId.FUR: Ability.DEX,
    SkillId.IDE: Ability.INT,
    SkillId.INIT: Ability.DEX,
    SkillId.INTI: Ability.CHA,
    SkillId.INTU: Ability.WIS,
    SkillId.LAD: Ability.DEX,
    SkillId.OBINF: Ability.CHA,
    SkillId.OFI: Ability.INT,
    SkillId.PRC: Ability.WIS,
    SkillId.SUR: Ability.WIS,
}

_ARMOR_PENALTY_SKILLS = frozenset({SkillId.ACR, SkillId.ATH, SkillId.FUR, SkillId.LAD})


class ActorType(StrEnum):
    """Actor document types."""

    CHARACTER = "character"
    NPC = "npc"


class ItemType(StrEnum):
    """Item document types."""

    WEAPON = "weapon"
    EQUIPMENT = "equipment"
    CONSUMABLE = "consumable"
    TOOL = "tool"
    BACKPACK = "backpack"
    LOOT = "loot"
    CLASS = "class"
    SPELL = "spell"
    FEAT = "feat"


class ArmorType(StrEnum):
    """Equipment types, the first five of which count towards armor class."""

    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"
    NATURAL = "natural"
    SHIELD = "shield"
    BONUS = "bonus"
    CLOTHING = "clothing"
    TRINKET = "trinket"
    VEHICLE = "vehicle"


class ArmorCalculation(StrEnum):
    """Armor class calculation strategies."""

    FLAT = "flat"
    NATURAL = "natural"
    DEFAULT = "default"
    CUSTOM = "custom"


class BabProgression(StrEnum):
    """Base attack bonus progressions of a class."""

    LOW = "low"
    MED = "med"
    HIGH = "high"


class ActorSize(StrEnum):
    """Creature sizes, from Ínfimo to Colossal."""

    INFIMO = "infimo"
    DIMINUTO = "diminuto"
    TINY = "tiny"
    SMALL = "sm"
    MEDIUM = "med"
    LARGE = "lg"
    HUGE = "huge"
    GARGANTUAN = "grg"
    COLOSSAL = "colossal"


class UsePeriod(StrEnum):
    """When limited uses recover."""

    SHORT_REST = "sr"
    LONG_REST = "lr"
    DAY = "day"
    CHARGES = "charges"


class ConsumeType(StrEnum):
    """Resources an item may consume when used."""

    AMMO = "ammo"
    ATTRIBUTE = "attribute"
    MATERIAL = "material"
    CHARGES = "charges"


class ActionType(StrEnum):
    """What an activated item does."""

    MELEE_WEAPON_ATTACK = "mwak"
    RANGED_WEAPON_ATTACK = "rwak"
    MELEE_SPELL_ATTACK = "msak"
    RANGED_SPELL_ATTACK = "rsak"
    SAVE = "save"
    HEAL = "heal"
    ABILITY_CHECK = "abil"
    UTILITY = "util"
    OTHER = "other"

    @property
    def is_attack(self) -> bool:
        """Check whether the action makes an attack roll."""
        return self in {
            ActionType.MELEE_WEAPON_ATTACK,
            ActionType.RANGED_WEAPON_ATTACK,
            ActionType.MELEE_SPELL_ATTACK,
            ActionType.RANGED_SPELL_ATTACK,
        }


class WeaponType(StrEnum):
    """Weapon categories (M = melee, R = ranged)."""

    SIMPLE_MELEE = "simpleM"
    SIMPLE_RANGED = "simpleR"
    MARTIAL_MELEE = "martialM"
    MARTIAL_RANGED = "martialR"
    EXOTIC_MELEE = "exoM"
    EXOTIC_RANGED = "exoR"
    NATURAL = "natural"
    IMPROVISED = "improv"


class SpellPreparationMode(StrEnum):
    """How a spell is made available."""

    PREPARED = "prepared"
    ALWAYS = "always"
    AT_WILL = "atwill"
    INNATE = "innate"


class SpellProgression(StrEnum):
    """Caster level contributed by a class."""

    NONE = "none"
    FULL = "full"
    TWO_THIRDS = "twoThirds"
    HALF = "half"


class Currency(StrEnum):
    """Coin denominations, most valuable first."""

    PP = "pp"
    GP = "gp"
    SP = "sp"
    CP = "cp"


class RestType(StrEnum):
    """Rest durations."""

    SHORT = "short"
    LONG = "long"


class EffectMode(IntEnum):
    """How an active effect change combines with the current value."""

    CUSTOM = 0
    MULTIPLY = 1
    ADD = 2
    DOWNGRADE = 3
    UPGRADE = 4
    OVERRIDE = 5


__all__ = [
    "Ability",
    "SaveId",
    "SkillId",
    "ActorType",
    "ItemType",
    "ArmorType",
    "ArmorCalculation",
    "BabProgression",
    "ActorSize",
    "UsePeriod",
    "ConsumeType",
    "ActionType",
    "WeaponType",
    "SpellPreparationMode",
    "SpellProgression",
    "Currency",
    "RestType",
    "EffectMode",
]
