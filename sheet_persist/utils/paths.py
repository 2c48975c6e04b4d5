"""
RESPONSIBILITIES
- Resolve the sheet_persist home directory used for logs.
PROCESS OVERVIEW
1. resolve_root() expands user input, then SHEET_PERSIST_HOME, then ~/SheetPersist.
2. log_dir() creates <root>/logs on demand.
"""

from __future__ import annotations

import os
from pathlib import Path

HOME_ENV_VAR = "SHEET_PERSIST_HOME"
LOG_SUBDIR = "logs"


def resolve_root(root: str | os.PathLike[str] | None = None) -> Path:
    """Return the sheet_persist root, defaulting to ~/SheetPersist."""

    if root is not None:
        base = Path(root)
    elif os.environ.get(HOME_ENV_VAR):
        base = Path(os.environ[HOME_ENV_VAR])
    else:
        base = Path.home() / "SheetPersist"
    return base.expanduser().resolve()


def log_dir(root: str | os.PathLike[str] | None = None) -> Path:
    target = resolve_root(root) / LOG_SUBDIR
    target.mkdir(parents=True, exist_ok=True)
    return target
