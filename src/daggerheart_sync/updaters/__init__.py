"""
Per-category entry updaters.
"""

from .base import SyncContext
from .beastforms import make_beastforms_updater
from .classes import make_classes_updater, make_subclasses_updater
from .domains import make_domains_updater
from .encounters import make_adversaries_updater, make_encounters_updater, make_environments_updater
from .equipment import EQUIPMENT_TYPES, make_equipment_updater
from .heritage import make_ancestries_updater, make_communities_updater
from .transformations import make_transformations_updater

__all__ = [
    "EQUIPMENT_TYPES",
    "SyncContext",
    "make_adversaries_updater",
    "make_ancestries_updater",
    "make_beastforms_updater",
    "make_classes_updater",
    "make_communities_updater",
    "make_domains_updater",
    "make_encounters_updater",
    "make_environments_updater",
    "make_equipment_updater",
    "make_subclasses_updater",
    "make_transformations_updater",
]
