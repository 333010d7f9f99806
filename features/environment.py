# [TEMPLATE: CUI // SP-CTI]
"""Behave environment configuration for OT security BDD tests."""

import os
import shutil
import sys
import tempfile

# Step modules import ot_security at load time, before before_all runs
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def before_all(context):
    """Set up global test context."""
    context.project_root = PROJECT_ROOT


def before_scenario(context, scenario):
    """Give every scenario a fresh, empty store."""
    from ot_security.db.init_ot_security_db import init_db

    context.tmp_dir = tempfile.mkdtemp(prefix="ot-security-bdd-")
    context.db_path = os.path.join(context.tmp_dir, "ot-security.db")
    init_db(context.db_path)
    context.result = None
    context.error = None


def after_scenario(context, scenario):
    """Remove the scenario store."""
    shutil.rmtree(context.tmp_dir, ignore_errors=True)
