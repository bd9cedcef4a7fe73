"""Data migration of stored actor and item documents.

Stored documents written by older releases are brought up to date by
computing update data for them; the host applies the updates. Each
migration function returns an empty dict when nothing changes.

Example:
    >>> migrate_actor_data({"type": "character", "system": {"currency": {"ep": 3}}})
    {'system.currency.-=ep': None}
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from trpg_rules.core.exceptions import MigrationError
from trpg_rules.core.logging import get_logger
from trpg_rules.models.base import get_property
from trpg_rules.models.enums import ActorType


logger = get_logger(__name__)

NEEDS_MIGRATION_VERSION = "1.0.11"
COMPATIBLE_MIGRATION_VERSION = "1"

_NPC_ITEM_FLAGS: tuple[str, ...] = ("preparation.prepared", "equipped", "proficient")


# =============================================================================
# Versions
# =============================================================================


def _version_tuple(version: str) -> tuple[int, ...]:
    parts = []
    for part in str(version).split("."):
        digits = "".join(char for char in part if char.isdigit())
        parts.append(int(digits) if digits else 0)
    return tuple(parts)


def is_newer_version(version: str, than: str) -> bool:
    """Check whether ``version`` is newer than ``than`` (``1.0.11`` > ``1.0.9``)."""
    left, right = _version_tuple(version), _version_tuple(than)
    width = max(len(left), len(right))
    return left + (0,) * (width - len(left)) > right + (0,) * (width - len(right))


def needs_migration(current_version: str | None) -> bool:
    """Check whether a world last migrated at ``current_version`` must migrate.

    A world with no recorded version is new and is stamped rather than
    migrated.
    """
    return bool(current_version) and is_newer_version(NEEDS_MIGRATION_VERSION, current_version)


def is_compatible(current_version: str | None) -> bool:
    """Check whether a world is recent enough to migrate reliably."""
    return not current_version or not is_newer_version(COMPATIBLE_MIGRATION_VERSION, current_version)


# =============================================================================
# Documents
# =============================================================================


def _system(document: Mapping[str, Any]) -> Mapping[str, Any]:
    system = document.get("system", document.get("data"))
    if system is None:
        return {}
    if not isinstance(system, Mapping):
        raise MigrationError(
            "Document system data is not a mapping",
            document_id=document.get("_id"),
            details={"system": type(system).__name__},
        )
    return system


def migrate_item_data(item: Mapping[str, Any]) -> dict[str, Any]:
    """Compute the update data for one item document.

    No item changes are pending in the current data model.

    Args:
        item: Stored item data.

    Returns:
        Dotted update data; empty when nothing changes.
    """
    return {}


def migrate_actor_data(actor: Mapping[str, Any]) -> dict[str, Any]:
    """Compute the update data for one actor document and its items.

    Electrum pieces were dropped from the purse. NPC items stored as
    unprepared, unequipped or non-proficient are switched on, since NPCs
    always use what they carry.

    Args:
        actor: Stored actor data with ``type``, ``system`` and ``items``.

    Returns:
        Dotted update data. Owned item updates are listed under ``items``,
        each carrying the item ``_id``.

    Raises:
        MigrationError: If the document or one of its items is malformed.
    """
    if not isinstance(actor, Mapping):
        raise MigrationError("Actor data is not a mapping", details={"type": type(actor).__name__})

    update_data: dict[str, Any] = {}
    currency = _system(actor).get("currency")
    if isinstance(currency, Mapping) and "ep" in currency:
        update_data["system.currency.-=ep"] = None

    is_npc = actor.get("type") == ActorType.NPC
    items = []
    for item in actor.get("items") or []:
        if not isinstance(item, Mapping):
            raise MigrationError(
                "Owned item data is not a mapping",
                document_id=actor.get("_id"),
                details={"item": repr(item)},
            )
        item_update = migrate_item_data(item)
        if is_npc:
            item_system = _system(item)
            for path in _NPC_ITEM_FLAGS:
                if get_property(item_system, path) is False:
                    item_update[f"system.{path}"] = True
        if item_update:
            item_update["_id"] = item.get("_id")
            items.append(item_update)

    if items:
        update_data["items"] = items
    return update_data


# =============================================================================
# World
# =============================================================================


@dataclass
class MigrationReport:
    """Outcome of migrating a batch of documents.

    Attributes:
        actors: Update data by actor id, for actors that changed.
        items: Update data by item id, for items that changed.
        failures: Errors of documents that could not be migrated.
    """

    actors: dict[str, dict[str, Any]] = field(default_factory=dict)
    items: dict[str, dict[str, Any]] = field(default_factory=dict)
    failures: list[MigrationError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """Check whether every document migrated."""
        return not self.failures


def migrate_world(
    actors: Iterable[Mapping[str, Any]] = (),
    items: Iterable[Mapping[str, Any]] = (),
) -> MigrationReport:
    """Migrate every stored actor and item.

    A document that fails is logged and recorded in the report; the
    remaining documents still migrate.

    Args:
        actors: Stored actor data.
        items: Stored world item data.

    Returns:
        The update data of changed documents and the failures.
    """
    report = MigrationReport()
    logger.info("Starting data migration", target_version=NEEDS_MIGRATION_VERSION)

    for kind, documents, migrate, updates in (
        ("actor", actors, migrate_actor_data, report.actors),
        ("item", items, migrate_item_data, report.items),
    ):
        for document in documents:
            document_id = document.get("_id", "") if isinstance(document, Mapping) else ""
            name = document.get("name", "") if isinstance(document, Mapping) else ""
            try:
                update_data = migrate(document)
            except MigrationError as exc:
                logger.error(f"Migration of {kind} failed", name=name, error=str(exc))
                report.failures.append(exc)
                continue
            if update_data:
                logger.info(f"Migrating {kind}", name=name)
                updates[document_id] = update_data

    logger.info(
        "Data migration complete",
        actors=len(report.actors),
        items=len(report.items),
        failures=len(report.failures),
    )
    return report


__all__ = [
    "NEEDS_MIGRATION_VERSION",
    "COMPATIBLE_MIGRATION_VERSION",
    "is_newer_version",
    "needs_migration",
    "is_compatible",
    "migrate_item_data",
    "migrate_actor_data",
    "MigrationReport",
    "migrate_world",
]
