from __future__ import annotations

import os
import sys
from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context

# alembic runs from the repo root or alembic/; both must import the app modules
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from db import DATABASE_URL, IS_SQLITE, Base  # noqa: E402
from models import ProblemSession, RunScore, Submission, User  # noqa: E402

target_metadata = Base.metadata

_missing = [
    m.__tablename__
    for m in (User, ProblemSession, Submission, RunScore)
    if m.__tablename__ not in target_metadata.tables
]
if _missing:
    # autogenerate against partial metadata would emit drop_table for these
    raise RuntimeError(f"practice tables missing from Base.metadata: {', '.join(_missing)}")

_OPTIONS = dict(target_metadata=target_metadata, compare_type=True, render_as_batch=IS_SQLITE)

if context.is_offline_mode():
    context.configure(url=DATABASE_URL, literal_binds=True, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()
else:
    with create_engine(DATABASE_URL, poolclass=pool.NullPool).connect() as connection:
        context.configure(connection=connection, **_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()
