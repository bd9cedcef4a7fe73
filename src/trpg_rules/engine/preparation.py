"""The actor preparation pipeline.

``prepare_actor`` recomputes every derived value of an actor in the order
the host prepares documents: base data, embedded items, active effects,
derived data, then item values that depend on the prepared actor.

Example:
    >>> actor = Actor.from_document(document)
    >>> report = prepare_actor(actor)
    >>> actor.attributes.ac.value, report.warnings
    (15, [])
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from trpg_rules.core.config import Settings, get_settings
from trpg_rules.core.logging import actor_context, get_logger
from trpg_rules.engine.abilities import apply_flag_bonuses, prepare_abilities, prepare_saves, prepare_skills
from trpg_rules.engine.armor import compute_armor_class, prepare_base_armor_class
from trpg_rules.engine.effects import CustomHandler, apply_active_effects, determine_suppression
from trpg_rules.engine.encumbrance import compute_encumbrance
from trpg_rules.engine.items import prepare_final_attributes, prepare_item
from trpg_rules.engine.progression import prepare_character_data, prepare_npc_data
from trpg_rules.engine.spellcasting import prepare_spellcasting
from trpg_rules.models.actor import Actor
from trpg_rules.models.items import Item


logger = get_logger(__name__)


@dataclass
class PreparationReport:
    """What a preparation pass found.

    Attributes:
        warnings: Localization keys of problems found, such as
            ``TRPG.WarnMultipleArmor``.
        overrides: Values written by active effects, by change key.
    """

    warnings: list[str] = field(default_factory=list)
    overrides: dict[str, object] = field(default_factory=dict)


def prepare_base_data(actor: Actor, settings: Settings | None = None) -> None:
    """Reset armor class parts and derive type-specific base data."""
    prepare_base_armor_class(actor)
    if actor.is_npc:
        prepare_npc_data(actor)
    else:
        prepare_character_data(actor, settings)


def prepare_derived_data(actor: Actor, settings: Settings | None = None) -> list[str]:
    """Derive abilities, saves, encumbrance, skills, spellcasting and AC.

    Returns:
        Warnings raised while computing the armor class.
    """
    prepare_abilities(actor)
    prepare_saves(actor)
    actor.attributes.encumbrance = compute_encumbrance(actor, settings)
    prepare_skills(actor)
    prepare_spellcasting(actor)
    return compute_armor_class(actor).warnings


def prepare_actor(
    actor: Actor,
    settings: Settings | None = None,
    *,
    custom_handlers: Mapping[str, CustomHandler] | None = None,
) -> PreparationReport:
    """Recompute every derived value of an actor and its items.

    Active effects write into the actor's own values, so preparing the
    same object twice applies them twice. Prepare a fresh model built
    from the stored document (or a ``model_copy(deep=True)``) each time.

    Args:
        actor: The actor; updated in place.
        settings: Settings; defaults to the cached settings.
        custom_handlers: Handlers for ``CUSTOM`` active effect changes.

    Returns:
        The preparation report; its warnings are also stored on the
        actor.
    """
    settings = settings or get_settings()
    report = PreparationReport()
    actor.preparation_warnings = []

    with actor_context(actor_id=actor.id, actor_name=actor.name):
        prepare_base_data(actor, settings)
        for item in actor.items:
            prepare_item(item)

        determine_suppression(actor)
        report.overrides = apply_active_effects(actor, custom_handlers)

        report.warnings.extend(prepare_derived_data(actor, settings))
        apply_flag_bonuses(actor)

        for item in actor.items:
            prepare_final_attributes(item, actor)

    actor.preparation_warnings = list(report.warnings)
    if report.warnings:
        logger.warning("Actor prepared with warnings", actor=actor.name, warnings=report.warnings)
    else:
        logger.debug("Actor prepared", actor=actor.name, level=actor.details.level)
    return report


def prepare_unowned_item(item: Item) -> None:
    """Prepare an item that belongs to no actor."""
    prepare_item(item)
    prepare_final_attributes(item, None)


__all__ = [
    "PreparationReport",
    "prepare_base_data",
    "prepare_derived_data",
    "prepare_actor",
    "prepare_item",
    "prepare_unowned_item",
]
