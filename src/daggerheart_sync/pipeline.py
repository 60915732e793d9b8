"""
The reconciliation batch job.

Source data is loaded once, turned into lookup maps, and every destination
file is then rewritten by its category updater.  Files are independent: a
file that cannot be processed is recorded in the report and the run goes on.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from .config import API_ENDPOINTS, SyncConfig
from .exceptions import DestinationFileError, SyncError
from .overrides import OverrideTables, default_overrides
from .report import FileStats, SyncReport
from .sources.cache import load_all
from .sources.lookup import (
    FeatureConflict,
    armor_description,
    build_class_items_map,
    build_equipment_map,
    build_feature_map,
    build_potential_labels,
    build_top_level_map,
    build_transformation_map,
    default_equipment_description,
    log_conflicts,
    prepare_ancestry_main_body,
    prepare_community_main_body,
    weapon_description,
)
from .sources.models import BilingualDataset
from .storage import EntryUpdater, apply_label, load_snapshot_entries, update_entries
from .text.normalize import normalize_key
from .updaters import (
    EQUIPMENT_TYPES,
    SyncContext,
    make_adversaries_updater,
    make_ancestries_updater,
    make_beastforms_updater,
    make_classes_updater,
    make_communities_updater,
    make_domains_updater,
    make_encounters_updater,
    make_environments_updater,
    make_equipment_updater,
    make_subclasses_updater,
    make_transformations_updater,
)

logger = logging.getLogger("daggerheart-sync")

# Category key -> destination file name
TRANSLATION_FILES: dict[str, str] = {
    "classes": "daggerheart.classes.json",
    "subclasses": "daggerheart.subclasses.json",
    "ancestries": "daggerheart.ancestries.json",
    "communities": "daggerheart.communities.json",
    "domains": "daggerheart.domains.json",
    "weapons": "daggerheart.weapons.json",
    "armors": "daggerheart.armors.json",
    "loot": "daggerheart.loot.json",
    "consumables": "daggerheart.consumables.json",
    "beastforms": "daggerheart.beastforms.json",
    "adversaries": "daggerheart.adversaries.json",
    "environments": "daggerheart.environments.json",
}

# Third-party module files, updated only when present
VOID_FILE_PREFIX = "the-void-unofficial."
VOID_FILE_SUFFIXES: tuple[str, ...] = (
    "classes",
    "subclasses",
    "ancestries",
    "communities",
    "domains",
    "transformations",
    "weapons",
    "adversaries--environments",
)

# Endpoint -> (description fields, main field, main field preprocessor)
TOP_LEVEL_SOURCES: dict[str, tuple[tuple[str, ...], str | None, Callable | None]] = {
    "class": (("description",), None, None),
    "subclass": (("description",), None, None),
    "ancestry": (("short_description", "description"), "main_body", prepare_ancestry_main_body),
    "community": (("description", "short_description"), "main_body", prepare_community_main_body),
    "domain-card": ((), "main_body", None),
    "beastform": (("main_body", "short_description"), None, None),
    "adversary": (("short_description",), None, None),
    "environment": (("short_description",), None, None),
    "rule": (("description",), "main_body", None),
}

# Feature scope -> (endpoint, feature list fields)
FEATURE_SOURCES: dict[str, tuple[str, tuple[str, ...]]] = {
    "class": ("class", ("features",)),
    "subclass": ("subclass", ("foundation_features", "specialization_features", "mastery_features")),
    "ancestry": ("ancestry", ("features",)),
    "community": ("community", ("features",)),
    "domain-card": ("domain-card", ("features",)),
    "beastform": ("beastform", ("features",)),
    "adversary": ("adversary", ("features",)),
    "environment": ("environment", ("features",)),
}

EQUIPMENT_DESCRIPTIONS = {
    "armors": armor_description,
    "weapons": weapon_description,
    "consumables": default_equipment_description,
    "loot": default_equipment_description,
}


@dataclass
class SyncTask:
    """One destination file and the updater that rewrites it."""

    key: str
    file: str
    path: Path
    make_updater: Callable[[], EntryUpdater]
    ignored_missing: frozenset[str] = field(default_factory=frozenset)


def void_file_key(suffix: str) -> str:
    """``"adversaries--environments"`` -> ``"voidAdversaries--environments"``"""
    return f"void{suffix[:1].upper()}{suffix[1:]}"


def detect_void_files(translations_dir: Path) -> dict[str, Path]:
    """Third-party translation files present on disk, by suffix."""
    found = {}
    for suffix in VOID_FILE_SUFFIXES:
        path = translations_dir / f"{VOID_FILE_PREFIX}{suffix}.json"
        if path.exists():
            found[suffix] = path
    return found


def build_context(
    datasets: Mapping[str, BilingualDataset],
    overrides: OverrideTables,
    adversary_snapshot: Mapping[str, Any] | None = None,
) -> tuple[SyncContext, list[FeatureConflict]]:
    """Build every lookup map of a run from the loaded datasets."""
    ctx = SyncContext(overrides=overrides)
    conflicts: list[FeatureConflict] = []

    for endpoint, (fields, main_field, processor) in TOP_LEVEL_SOURCES.items():
        if endpoint in datasets:
            ctx.tops[endpoint] = build_top_level_map(datasets[endpoint], fields, main_field, processor)

    for scope, (endpoint, fields) in FEATURE_SOURCES.items():
        if endpoint in datasets:
            ctx.features[scope], found = build_feature_map(datasets[endpoint], fields, scope)
            conflicts.extend(found)

    if "transformation" in datasets:
        ctx.transformations = build_transformation_map(datasets["transformation"])
    if "class" in datasets:
        ctx.class_items = build_class_items_map(datasets["class"])
    if "equipment" in datasets:
        for category, type_slugs in EQUIPMENT_TYPES.items():
            ctx.equipment[category] = build_equipment_map(
                datasets["equipment"], type_slugs, EQUIPMENT_DESCRIPTIONS[category]
            )
    if "environment" in datasets:
        ctx.potential_labels = build_potential_labels(datasets["environment"].target, overrides.other_potential_label)
    if "adversary" in datasets:
        ctx.adversaries_en_by_slug = datasets["adversary"].source_by_slug()

    for key, entry in (adversary_snapshot or {}).items():
        norm = normalize_key(key)
        if norm and isinstance(entry, dict):
            ctx.adversary_snapshot[norm] = entry
    return ctx, conflicts


def _read_previous(path: Path) -> dict[str, Any]:
    try:
        return load_snapshot_entries(path)
    except DestinationFileError as e:
        # The file's own task reports the error.
        logger.warning(f"Cannot read {path.name} before update: {e.message}")
        return {}


def build_tasks(config: SyncConfig, ctx: SyncContext) -> list[SyncTask]:
    """Tasks for the standard files followed by any third-party files found.

    Domain and equipment updaters get a copy of their file as it was before
    the run.
    """
    translations_dir: Path = config.translations_dir
    overrides = ctx.overrides
    legacy = frozenset(overrides.legacy_ancestry_keys)

    def domains(path: Path) -> Callable[[], EntryUpdater]:
        return lambda: make_domains_updater(ctx, _read_previous(path))

    def equipment(category: str, path: Path, **options) -> Callable[[], EntryUpdater]:
        return lambda: make_equipment_updater(ctx, category, _read_previous(path), **options)

    factories: dict[str, Callable[[Path], Callable[[], EntryUpdater]]] = {
        "classes": lambda path: lambda: make_classes_updater(ctx),
        "subclasses": lambda path: lambda: make_subclasses_updater(ctx),
        "ancestries": lambda path: lambda: make_ancestries_updater(ctx),
        "communities": lambda path: lambda: make_communities_updater(ctx),
        "domains": domains,
        "beastforms": lambda path: lambda: make_beastforms_updater(ctx),
        "adversaries": lambda path: lambda: make_adversaries_updater(ctx),
        "environments": lambda path: lambda: make_environments_updater(ctx),
        "armors": lambda path: equipment("armors", path, item_overrides=overrides.armors, keep_previous_description=False),
        "weapons": lambda path: equipment("weapons", path),
        "consumables": lambda path: equipment("consumables", path),
        "loot": lambda path: equipment("loot", path),
        "transformations": lambda path: lambda: make_transformations_updater(ctx),
        "adversaries--environments": lambda path: lambda: make_encounters_updater(ctx),
    }

    tasks = []
    for key, file_name in TRANSLATION_FILES.items():
        path = translations_dir / file_name
        tasks.append(
            SyncTask(
                key=key,
                file=file_name,
                path=path,
                make_updater=factories[key](path),
                ignored_missing=legacy if key == "ancestries" else frozenset(),
            )
        )
    for suffix, path in detect_void_files(translations_dir).items():
        tasks.append(
            SyncTask(
                key=void_file_key(suffix),
                file=path.name,
                path=path,
                make_updater=factories[suffix](path),
                ignored_missing=legacy if suffix == "ancestries" else frozenset(),
            )
        )
    return tasks


def run_task(task: SyncTask) -> FileStats:
    """Run one task; failures are recorded on the returned stats."""
    stats = FileStats(key=task.key, file=task.file)
    logger.info(f"Updating {task.file}...")
    try:
        update_entries(task.path, task.make_updater(), stats)
    except SyncError as e:
        logger.error(f"❌ {task.file}: {e.message}")
        stats.error = e.message
        return stats
    except Exception as e:
        logger.exception(f"❌ Unexpected error while updating {task.file}")
        stats.error = f"{type(e).__name__}: {e}"
        return stats
    if task.ignored_missing:
        stats.exclude_missing(task.ignored_missing)
    return stats


def apply_labels(translations_dir: Path, labels: Mapping[str, str]) -> list[str]:
    """Restore the canonical ``label`` of each listed file; returns changed files."""
    changed = []
    for file_name, label in labels.items():
        path = translations_dir / file_name
        if not path.exists():
            continue
        try:
            if apply_label(path, label):
                changed.append(file_name)
        except DestinationFileError as e:
            logger.error(f"❌ Cannot set label of {file_name}: {e.message}")
    return changed


async def run_sync(config: SyncConfig, overrides: OverrideTables | None = None) -> SyncReport:
    """Reconcile every destination file with the cached source data.

    Args:
        config: Locations of the cache, destination files and snapshots
        overrides: Manual tables; the bundled ones when omitted

    Returns:
        Per-file statistics, feature conflicts and failed files

    Raises:
        SourceCacheError: If the cache is incomplete; nothing is written then
    """
    overrides = overrides or default_overrides()
    datasets = await load_all(config.cache_dir, API_ENDPOINTS, config.languages)
    logger.debug(f"📂 Loaded {len(datasets)} source datasets from {config.cache_dir}")

    snapshot_path = config.original_dir / TRANSLATION_FILES["adversaries"]
    ctx, conflicts = build_context(datasets, overrides, _read_previous(snapshot_path))
    log_conflicts(conflicts)

    report = SyncReport(conflicts=[f"{conflict.name}: {conflict.scope}" for conflict in conflicts])
    for task in build_tasks(config, ctx):
        report.files.append(run_task(task))

    for file_name in apply_labels(config.translations_dir, overrides.labels):
        logger.info(f"Restored label of {file_name}")
    return report
