import sys
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from gastos_hormigas.config import settings
from gastos_hormigas.core.months import MonthMarker
from gastos_hormigas.database import engine


def column_exists_sqlite(conn, table: str, column: str) -> bool:
    result = conn.exec_driver_sql(f"PRAGMA table_info('{table}')")
    for _cid, name, _type, _notnull, _dflt, _pk in result.fetchall():
        if name == column:
            return True
    return False


def main():
    """
    Backfill last_posted_year/last_posted_month on a development SQLite
    database from a legacy `last_posted_marker` text column ("2024-0" is
    January 2024). Postgres databases use the alembic revision instead.
    """
    url = settings.database_url or ""
    print(f"Database URL: {url}")
    if not url.startswith("sqlite"):
        print("Not SQLite. Run `alembic upgrade head` instead.")
        return

    with engine.begin() as conn:
        if not column_exists_sqlite(conn, "fixed_expenses", "last_posted_marker"):
            print("No legacy 'last_posted_marker' column on 'fixed_expenses'. Nothing to do.")
            return

        rows = conn.exec_driver_sql(
            "SELECT id, last_posted_marker FROM fixed_expenses WHERE last_posted_marker IS NOT NULL"
        ).fetchall()
        converted = 0
        for row_id, legacy in rows:
            try:
                marker = MonthMarker.from_legacy(legacy)
            except ValueError:
                print(f"Skipping fixed expense {row_id}: unreadable marker {legacy!r}")
                continue
            conn.exec_driver_sql(
                "UPDATE fixed_expenses SET last_posted_year = ?, last_posted_month = ? WHERE id = ?",
                (marker.year, marker.month, row_id),
            )
            converted += 1

        print(f"Converted {converted} of {len(rows)} markers. Dropping legacy column...")
        conn.exec_driver_sql("ALTER TABLE fixed_expenses DROP COLUMN last_posted_marker;")
        print("Done.")


if __name__ == "__main__":
    main()
