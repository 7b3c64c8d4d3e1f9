from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import inspect, text

from alembic.config import Config
from alembic.script import ScriptDirectory
from db import Base, engine
from deps.engine import get_engine
from session_engine import QuizEngine

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/db")
def health_db():
    """Connectivity plus presence of the practice tables."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            present = set(inspect(conn).get_table_names())
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"db_error: {type(e).__name__}: {e}")
    missing = sorted(set(Base.metadata.tables) - present)
    return {"ok": not missing, "missing_tables": missing}


def _alembic_heads() -> list[str]:
    return list(ScriptDirectory.from_config(Config("alembic.ini")).get_heads())


def _db_revision() -> str | None:
    with engine.connect() as conn:
        if not inspect(conn).has_table("alembic_version"):
            # schema created by metadata.create_all (tests, local dev)
            return None
        return conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one_or_none()


@router.get("/migrations")
def health_migrations():
    try:
        heads = _alembic_heads()
    except Exception:
        heads = []
    try:
        revision = _db_revision()
    except Exception as e:
        return {"ok": False, "error": f"db_connect_failed: {e}", "code_heads": heads, "db_version": None}
    synced = bool(heads) and revision in heads
    return {"ok": synced, "synced": synced, "db_version": revision, "code_heads": heads}


@router.get("/countdowns")
def health_countdowns(quiz: QuizEngine = Depends(get_engine)):
    return {
        "ok": True,
        "server_countdown": quiz.server_countdown,
        "active": quiz.countdowns.active_count(),
    }
