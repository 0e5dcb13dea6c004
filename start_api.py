#!/usr/bin/env python3
"""
Run migrations (same process, same DATABASE_URL), optionally seed, then uvicorn.
"""
import os
import sys

# 1) Wait for DB
import wait_for_db  # noqa: F401

# 2) Run migrations using the same settings as the app
from ticketdesk.core.config import settings
from alembic.config import Config
from alembic import command

alembic_cfg = Config(os.path.join(os.path.dirname(__file__), "alembic.ini"))
alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
command.upgrade(alembic_cfg, "head")

# 3) Demo catalogue for fresh environments
if settings.SEED_DEMO_EVENTS:
    from ticketdesk.seed import run as run_seed
    run_seed()

# 4) Start uvicorn (replace current process)
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "ticketdesk.main:app", "--host", "0.0.0.0", "--port", os.getenv("PORT", "8000")],
)
