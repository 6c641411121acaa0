from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import psycopg

from authkeeper.logging import setup_logging
from authkeeper.settings import get_settings

logger = logging.getLogger("authkeeper.migrate")

MIGRATIONS_DIR = Path(os.environ.get("MIGRATIONS_DIR", "migrations"))
SCHEMA_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version    text PRIMARY KEY,
  applied_at timestamptz NOT NULL DEFAULT now()
);
"""


def list_migrations(directory: Path = MIGRATIONS_DIR) -> list[Path]:
    if not directory.exists():
        raise FileNotFoundError(f"migrations dir not found: {directory}")
    return sorted(directory.glob("*.sql"))


def applied_versions(conn: psycopg.Connection) -> set[str]:
    with conn.cursor() as cur:
        cur.execute(SCHEMA_TABLE_SQL)
        cur.execute("SELECT version FROM schema_migrations ORDER BY version;")
        rows = cur.fetchall()
    return {r[0] for r in rows}


def pending(all_paths: list[Path], done: set[str]) -> list[Path]:
    return [p for p in all_paths if p.stem not in done]


def apply_one(conn: psycopg.Connection, path: Path) -> None:
    version = path.stem
    logger.info("applying migration", extra={"version": version})
    with conn.cursor() as cur:
        cur.execute(path.read_text(encoding="utf-8"))
        cur.execute(
            "INSERT INTO schema_migrations (version, applied_at) VALUES (%s, now());",
            (version,),
        )
    conn.commit()


def cmd_up(dsn: str) -> int:
    with psycopg.connect(dsn, autocommit=False) as conn:
        to_run = pending(list_migrations(), applied_versions(conn))
        if not to_run:
            logger.info("no pending migrations")
            return 0
        for path in to_run:
            try:
                apply_one(conn, path)
            except psycopg.Error:
                conn.rollback()
                logger.exception("migration failed", extra={"version": path.stem})
                return 1
    return 0


def cmd_status(dsn: str) -> int:
    with psycopg.connect(dsn) as conn:
        done = applied_versions(conn)
    for path in list_migrations():
        state = "applied" if path.stem in done else "pending"
        print(f"{state:8} {path.stem}")
    return 0


def cmd_new(name: str) -> int:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M")
    path = MIGRATIONS_DIR / f"{ts}_{name}.sql"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("-- write your SQL here\n", encoding="utf-8")
    print(str(path))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m authkeeper.infrastructure.db.migrate")
    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("up")
    sub.add_parser("status")
    new = sub.add_parser("new")
    new.add_argument("name")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)
    if args.cmd == "new":
        return cmd_new(args.name)
    if args.cmd == "up":
        return cmd_up(settings.database_url)
    return cmd_status(settings.database_url)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
