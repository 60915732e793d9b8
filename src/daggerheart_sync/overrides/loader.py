"""
Loading the bundled override tables.
"""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..exceptions import OverrideConfigError
from .models import OverrideTables

logger = logging.getLogger("daggerheart-sync")

DEFAULT_OVERRIDES_PATH = Path(__file__).resolve().parent / "overrides.yaml"


def load_overrides(path: Path = DEFAULT_OVERRIDES_PATH) -> OverrideTables:
    """Parse an overrides YAML file.

    Raises:
        OverrideConfigError: If the file is missing, not valid YAML or does
            not match the expected structure
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise OverrideConfigError(f"Overrides file not found: {path}") from None
    except yaml.YAMLError as e:
        raise OverrideConfigError(f"Overrides file is not valid YAML: {path}", {"error": str(e)}) from e

    try:
        tables = OverrideTables.model_validate(data or {})
    except ValidationError as e:
        raise OverrideConfigError(f"Invalid overrides in {path}", {"error": str(e)}) from e
    logger.debug(
        f"Loaded overrides: {len(tables.action_overrides)} actions, "
        f"{len(tables.class_items)} class items, {len(tables.entry_patches)} patched categories"
    )
    return tables


@lru_cache(maxsize=1)
def default_overrides() -> OverrideTables:
    """Bundled override tables, parsed once per process."""
    return load_overrides()
