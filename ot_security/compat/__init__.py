#!/usr/bin/env python3
# CUI // SP-CTI
"""OT security compatibility helpers: config and store location."""
from ot_security.compat.config_loader import (  # noqa: F401
    DEFAULT_CONFIG,
    get_setting,
    load_config,
)
from ot_security.compat.db_utils import (  # noqa: F401
    get_db_connection,
    get_db_path,
    get_project_root,
    open_store,
)
