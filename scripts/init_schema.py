#!/usr/bin/env python3
"""Emit the job tracker Postgres schema."""

from __future__ import annotations

import argparse

from jobtracker.services.schema import SCHEMA_SQL

DROP_SQL = """drop table if exists job_attachments;
drop table if exists jobs;
"""


def render_sql(*, drop_existing: bool) -> str:
    header = "-- Job tracker schema\n-- Run with psql against the database named by JT_DATABASE_URL.\n"
    if drop_existing:
        return f"{header}\n{DROP_SQL}{SCHEMA_SQL}"
    return f"{header}{SCHEMA_SQL}"


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL that creates the job tracker tables.")
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Prefix the schema with drop statements (destroys tracked jobs and attachments)",
    )
    args = parser.parse_args()
    print(render_sql(drop_existing=args.drop_existing))


if __name__ == "__main__":
    main()
