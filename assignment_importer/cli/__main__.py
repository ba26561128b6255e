from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from assignment_importer.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from assignment_importer.db.memory_store import InMemoryStore
from assignment_importer.db.postgres_store import PostgresStore
from assignment_importer.db.store import AssignmentStore
from assignment_importer.logging.init import get_logger, log_summary, setup_logging
from assignment_importer.models.config_models import ImportConfig
from assignment_importer.services.orchestrator import ValidationAbortedError, import_file
from assignment_importer.services.summary import render_report_lines, render_summary_line
from assignment_importer.tabular.headers import MissingColumnsError, resolve_columns
from assignment_importer.tabular.reader import ParseError, read_upload
from assignment_importer.tabular.template import write_template

"""CLI entrypoint.

    python -m assignment_importer.cli assignments.xlsx --coordinator <uuid>

Flow: load .env -> load config -> open store -> import file -> print report and
SUMMARY line. Exit codes: 0 every row imported, 2 some rows failed or were
skipped, 1 fatal (config, connection, unreadable file, missing columns).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

COORDINATOR_ENV = "IMPORT_COORDINATOR_ID"


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Connection string, environment first.

    Precedence:
        1. DATABASE_URL / PGDSN (.env is loaded with override in main())
        2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. database section of config/import.yml for anything still missing
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """psycopg2 connection; PostgresStore commits per call."""
    conn = psycopg2.connect(_resolve_dsn(cfg))
    conn.autocommit = False
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def _open_store(cfg: ImportConfig, dry_run: bool) -> Iterator[AssignmentStore]:
    """In-memory store for dry runs, PostgresStore otherwise."""
    logger = get_logger()
    if dry_run:
        logger.info("mode=dry-run (in-memory store, nothing persisted)")
        yield InMemoryStore()
        return
    with _db_connection(cfg) as conn:
        logger.info("mode=live")
        yield PostgresStore(conn)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (its values win over the process environment)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Bulk project-assignment importer (CSV / Excel)")
    p.add_argument("file", nargs="?", type=Path, help="CSV / XLSX / XLS file to import")
    p.add_argument("--coordinator", help=f"coordinator user id (default: ${COORDINATOR_ENV})")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--dry-run", action="store_true", help="Reconcile against an empty in-memory store")
    p.add_argument("--inspect-data", action="store_true", help="Print resolved columns & first rows then exit")
    p.add_argument("--template", type=Path, metavar="OUT", help="Write the CSV import template and exit")
    return p.parse_args(argv)


def _inspect_data(path: Path) -> int:
    try:
        rows = read_upload(path)
        mapping = resolve_columns(rows[0].keys())
    except (ParseError, MissingColumnsError) as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name} rows={len(rows)}")
    for logical, header in mapping.items():
        print(f"  {logical} <- {header!r}")
    for row in rows[:3]:
        print("    sample_row=", {logical: mapping.value(row, logical) for logical in mapping})
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        logger = setup_logging(debug=True)
        logger.debug("debug mode enabled")

    if args.template is not None:
        out = write_template(args.template)
        logger.info(f"template written: {out}")
        return EXIT_SUCCESS_ALL

    if args.file is None:
        logger.error("no input file given")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(args.file)

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    coordinator_id = args.coordinator or os.getenv(COORDINATOR_ENV)
    if not coordinator_id:
        logger.error(f"coordinator id required (--coordinator or ${COORDINATOR_ENV})")
        return EXIT_FATAL

    logger.info(f"Importing {args.file} for coordinator {coordinator_id}")

    dry_run = args.dry_run or os.getenv("DISABLE_DB_CONNECT") == "1"
    try:
        with _open_store(cfg, dry_run) as store:
            report = import_file(args.file, coordinator_id, store, settings=cfg.settings)
    except psycopg2.Error as e:
        # 行単位の DB エラーは StoreError に包まれるため、ここに来るのは接続失敗のみ
        logger.error(f"database connection failed: {e}")
        return EXIT_FATAL
    except (ParseError, MissingColumnsError) as e:
        logger.error(f"import: {e}")
        return EXIT_FATAL
    except ValidationAbortedError as e:
        logger.error(f"import: {e}")
        for line in e.errors[: cfg.report.max_errors]:
            logger.error(line)
        if len(e.errors) > cfg.report.max_errors:
            logger.error(f"+{len(e.errors) - cfg.report.max_errors} more")
        return EXIT_FATAL

    for line in render_report_lines(report, cfg.report):
        logger.info(line)

    summary_line = render_summary_line(report)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if report.has_failures:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
