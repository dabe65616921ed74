from __future__ import annotations

import argparse
import json
from datetime import date, datetime
from pathlib import Path

from sqlalchemy import create_engine, text

DEFAULT_SQLITE_URL = "sqlite:///./data/daybook.db"

# password hashes and session tokens never leave the database
EXPORT_QUERIES: dict[str, str] = {
    "users": "SELECT id, username, email, created_at FROM users ORDER BY id",
    "journal_entries": "SELECT * FROM journal_entries ORDER BY user_id, entry_date",
    "settings": "SELECT * FROM settings ORDER BY id",
}


def _serialize_row(row: dict[str, object]) -> dict[str, object]:
    serialized: dict[str, object] = {}
    for key, value in row.items():
        if isinstance(value, (datetime, date)):
            serialized[key] = value.isoformat()
        else:
            serialized[key] = value
    return serialized


def export_sqlite(sqlite_url: str, output_path: Path) -> dict[str, int]:
    """Dump the Daybook tables to a JSON file and return row counts per table."""

    engine = create_engine(sqlite_url)
    payload: dict[str, list[dict[str, object]]] = {}

    try:
        with engine.begin() as connection:
            for table, query in EXPORT_QUERIES.items():
                result = connection.execute(text(query))
                payload[table] = [_serialize_row(dict(row)) for row in result.mappings()]
    finally:
        engine.dispose()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return {table: len(rows) for table, rows in payload.items()}


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Export Daybook data from SQLite to JSON")
    parser.add_argument("--sqlite-url", default=DEFAULT_SQLITE_URL, help="SQLite DATABASE_URL")
    parser.add_argument(
        "--output",
        default="data/daybook_export.json",
        type=Path,
        help="Path to export JSON file",
    )
    args = parser.parse_args(argv)

    counts = export_sqlite(args.sqlite_url, args.output)
    summary = ", ".join(f"{table}={count}" for table, count in counts.items())
    print(f"Exported {summary} to {args.output}")


if __name__ == "__main__":
    main()
