"""Directory set-up and template file access."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Union

from .errors import dir_creation_error, file_not_found_error

PathLike = Union[str, "os.PathLike[str]"]

ESSENTIAL_DIRS = ("subs", "logs", "data")
TEMPLATES_DIR = "templates"


def make_dir(path: PathLike) -> Path:
    """Create ``path`` and its parents if it does not exist yet."""
    target = Path(path)
    if not target.exists():
        target.mkdir(parents=True, exist_ok=True)
    return target


def make_essential_dirs(base: PathLike = ".") -> List[Path]:
    """Create the cache, log and data directories under ``base``."""
    created = []
    for name in ESSENTIAL_DIRS:
        try:
            created.append(make_dir(Path(base) / name))
        except OSError as exc:
            raise dir_creation_error(name, exc) from exc
    return created


def load_template(template_name: str, templates_dir: PathLike = TEMPLATES_DIR) -> bytes:
    """Read a template, refusing any path that leaves ``templates_dir``."""
    clean = os.path.normpath(template_name) if template_name else "."
    parent = os.sep + ".." + os.sep
    if clean.startswith("..") or parent in clean:
        raise file_not_found_error(template_name)

    full_path = Path(os.path.normpath(os.fspath(templates_dir) + os.sep + clean))
    if not full_path.exists():
        raise file_not_found_error(template_name)
    return full_path.read_bytes()