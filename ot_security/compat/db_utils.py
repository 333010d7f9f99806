#!/usr/bin/env python3
# CUI // SP-CTI
"""Centralized database path resolution and connection helpers.

Fallback chain for the store location:
    1. Explicit path argument (if provided)
    2. OT_MCP_DB_PATH environment variable
    3. database.path in args/ot_security_config.yaml
    4. Default: <project_root>/data/ot-security.db

Usage:
    from ot_security.compat.db_utils import get_db_path, get_db_connection

    conn = get_db_connection()                       # default store
    conn = get_db_connection(read_only=True)         # query path, never creates a file
    conn = get_db_connection(db_path="/other.db")    # explicit store
"""

import os
import sqlite3
from pathlib import Path
from typing import Optional, Union

from ot_security.compat.config_loader import get_setting, load_config
from ot_security.resilience.errors import ConfigurationError, StoreError

# Project root: 3 levels up from ot_security/compat/db_utils.py
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_DEFAULT_DB = _PROJECT_ROOT / "data" / "ot-security.db"


def get_project_root() -> Path:
    """Return the project root directory."""
    return _PROJECT_ROOT


def get_db_path(explicit: Optional[Union[str, Path]] = None, config: Optional[dict] = None) -> Path:
    """Resolve the OT security store path (see module docstring).

    ``config`` is a pre-loaded config dict; when *None* the default config
    file is read.
    """
    if explicit:
        return Path(explicit)

    env_path = os.environ.get("OT_MCP_DB_PATH")
    if env_path:
        return Path(env_path)

    configured = get_setting(
        "database.path", config=config if config is not None else load_config()
    )
    if configured:
        path = Path(configured)
        return path if path.is_absolute() else _PROJECT_ROOT / path

    return _DEFAULT_DB


def get_db_connection(
    db_path: Optional[Union[str, Path]] = None,
    validate: bool = False,
    read_only: bool = False,
    row_factory: bool = True,
) -> sqlite3.Connection:
    """Get a SQLite connection to the OT security store.

    Args:
        db_path: Explicit path override. Falls through ``get_db_path`` when *None*.
        validate: When *True*, raise ``FileNotFoundError`` if the file is missing.
        read_only: Open with ``mode=ro`` so a missing file fails instead of
                   being created empty.
        row_factory: When *True* (default), set ``sqlite3.Row`` rows.

    Returns:
        An open ``sqlite3.Connection``. Caller is responsible for closing it.
    """
    path = get_db_path(db_path)
    if validate and not path.exists():
        raise FileNotFoundError(
            f"Database not found: {path}\n"
            "Run: python ot_security/db/init_ot_security_db.py"
        )
    if read_only:
        conn = sqlite3.connect(f"{path.resolve().as_uri()}?mode=ro", uri=True)
    else:
        conn = sqlite3.connect(str(path))
    if row_factory:
        conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def open_store(db_path: Optional[Union[str, Path]] = None, operation: str = "") -> sqlite3.Connection:
    """Open the store read-only for a query operation.

    Raises:
        StoreError: The store cannot be located (unreadable config) or
                    opened (missing file, bad permissions).
    """
    try:
        path = get_db_path(db_path)
    except ConfigurationError as exc:
        raise StoreError(f"Cannot locate store: {exc}", operation=operation) from exc
    try:
        return get_db_connection(path, read_only=True)
    except sqlite3.Error as exc:
        raise StoreError(f"Cannot open store {path}: {exc}", operation=operation) from exc
