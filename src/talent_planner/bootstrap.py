"""Locate and load the catalog used by scripts and the web runtime."""

from __future__ import annotations

import os
from pathlib import Path

from talent_planner.models.catalog import Catalog


REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CATALOG_PATH = REPO_ROOT / "data" / "catalog.json"
CATALOG_ENV_VAR = "TALENT_CATALOG"


def resolve_catalog_path(explicit: Path | None = None) -> Path:
    """Pick the catalog file: explicit path, then $TALENT_CATALOG, then the bundled one."""
    if explicit is not None:
        path = Path(explicit).expanduser()
    else:
        env_path = os.environ.get(CATALOG_ENV_VAR)
        path = Path(env_path).expanduser() if env_path else DEFAULT_CATALOG_PATH
    if not path.is_file():
        raise FileNotFoundError(f"Catalog not found: {path}")
    return path


def load_catalog(explicit: Path | None = None) -> Catalog:
    return Catalog.from_json(resolve_catalog_path(explicit))
