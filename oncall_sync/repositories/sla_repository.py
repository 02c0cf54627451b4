# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: SLA history — inserts into ``sla_record`` and schema migrations.
NO business rules here — pure data access.
"""

import re
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Engine

from oncall_sync.core.logging import get_logger

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"
_MIGRATION_NAME = re.compile(r"^(\d+)_.*\.sql$")


def scan_migrations(sql_dir: Path = MIGRATIONS_DIR) -> list[tuple[str, Path]]:
    """SQL files named ``<version>_<name>.sql``, ordered by version."""
    result = []
    for sql_file in sql_dir.glob("*.sql"):
        match = _MIGRATION_NAME.match(sql_file.name)
        if match:
            result.append((match.group(1), sql_file))
    result.sort(key=lambda x: int(x[0]))
    return result


def _statements(sql: str) -> list[str]:
    lines = [line for line in sql.splitlines() if not line.strip().startswith("--")]
    return [stmt.strip() for stmt in "\n".join(lines).split(";") if stmt.strip()]


class SLARepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Schema ──

    def run_migrations(self, sql_dir: Path = MIGRATIONS_DIR) -> list[str]:
        """Apply pending migrations; returns the versions applied now."""
        applied: list[str] = []
        with self._engine.begin() as conn:
            conn.execute(text(
                "CREATE TABLE IF NOT EXISTS schema_migrations ("
                " version VARCHAR(32) PRIMARY KEY,"
                " applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW())"
            ))
            done = {row[0] for row in conn.execute(text("SELECT version FROM schema_migrations")).fetchall()}
            for version, path in scan_migrations(sql_dir):
                if version in done:
                    continue
                for stmt in _statements(path.read_text(encoding="utf-8")):
                    conn.execute(text(stmt))
                conn.execute(
                    text("INSERT INTO schema_migrations (version) VALUES (:v)"), {"v": version}
                )
                applied.append(version)
                logger.info("Applied migration %s", path.name)
        return applied

    # ── Write ──

    def insert_record(self, alias: str, metric: str, slo: float, value: float, met: bool) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                text("""
                    INSERT INTO sla_record (alias, metric, slo, value, met)
                    VALUES (:alias, :metric, :slo, :value, :met)
                """),
                {"alias": alias, "metric": metric, "slo": slo, "value": value, "met": met},
            )
