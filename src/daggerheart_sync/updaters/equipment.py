"""
Updater for armor, weapon, consumable and loot files.
"""

from typing import Any, Mapping

from ..merge.fields import set_html_field
from ..overrides.models import ItemOverride, resolve_alias
from ..sources.models import LookupEntry
from ..storage import EntryUpdater
from ..text.normalize import sanitize_name
from .base import SyncContext, translate_attack

# File category -> equipment type slugs of the data source
EQUIPMENT_TYPES: dict[str, tuple[str, ...]] = {
    "armors": ("armor",),
    "weapons": ("primary-weapon", "secondary-weapon", "combat-wheelchair"),
    "consumables": ("consumable",),
    "loot": ("item",),
}


def make_equipment_updater(
    ctx: SyncContext,
    category: str,
    previous_entries: Mapping[str, Any] | None = None,
    item_overrides: Mapping[str, ItemOverride] | None = None,
    keep_previous_description: bool = True,
) -> EntryUpdater:
    """Updater for one equipment file.

    Entries the source does not know are restored from ``previous_entries``
    (the file before this run).  When the source has no description, the
    previous one is kept if ``keep_previous_description`` is set.
    """
    overrides = ctx.overrides
    equipment: Mapping[str, LookupEntry] = ctx.equipment.get(category, {})
    previous_entries = previous_entries or {}
    item_overrides = item_overrides or {}

    def update(norm: str | None, entry: dict[str, Any], key: str) -> bool:
        previous = previous_entries.get(key)
        previous = previous if isinstance(previous, dict) else None

        override = item_overrides.get(key)
        if override:
            entry["name"] = sanitize_name(override.name or entry.get("name"))
            if override.description:
                set_html_field(entry, "description", override.description)
            else:
                entry.pop("description", None)
            translate_attack(entry, overrides)
            return True

        if not norm:
            return False
        info = equipment.get(norm) or equipment.get(resolve_alias(norm, overrides.aliases.equipment))
        if info is None:
            if previous is None:
                return False
            if "name" in previous:
                entry["name"] = previous["name"]
            if previous.get("description"):
                entry["description"] = previous["description"]
            else:
                entry.pop("description", None)
            translate_attack(entry, overrides)
            return True

        entry["name"] = sanitize_name(info.name)
        if info.description:
            set_html_field(entry, "description", info.description)
        elif keep_previous_description and previous is not None and previous.get("description"):
            entry["description"] = previous["description"]
        else:
            entry.pop("description", None)
        translate_attack(entry, overrides)
        return True

    return update
