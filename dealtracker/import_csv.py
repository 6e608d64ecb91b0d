"""
Import a startups CSV into the database.

Usage:
    python -m dealtracker.import_csv --csv startups.csv
    python -m dealtracker.import_csv --csv startups.csv --mapping mapping.json --recalculate

The mapping file is JSON ``{field: csv column}``. Without one, every supported
field is looked up under a column of the same name.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from dealtracker.config import DATABASE_URL
from dealtracker.database import create_engine, create_sessionmaker, init_db
from dealtracker.services.csv_import import SUPPORTED_FIELDS, import_csv
from dealtracker.services.ranking import recalculate_ranks

logger = logging.getLogger(__name__)


def load_mapping(path: str | None) -> dict[str, str]:
    if not path:
        return {field: field for field in sorted(SUPPORTED_FIELDS)}
    with open(path, encoding="utf-8") as f:
        mapping = json.load(f)
    if not isinstance(mapping, dict):
        raise SystemExit(f"Mapping file {path} must contain a JSON object")
    return {str(k): str(v) for k, v in mapping.items()}


async def run_import(csv_path: str, mapping: dict[str, str], database_url: str, recalculate: bool) -> dict:
    engine = create_engine(database_url)
    try:
        await init_db(engine)
        sessionmaker = create_sessionmaker(engine)

        csv_text = Path(csv_path).read_text(encoding="utf-8")
        async with sessionmaker() as session:
            result = await import_csv(session, csv_text, mapping)
            print(f"{result['message']} ({result['skipped']} of {result['total']} skipped)")

            if recalculate:
                ranks = await recalculate_ranks(session)
                print(f"Recalculated ranks for {ranks.count} startups in {ranks.duration_seconds:.3f}s")
        return result
    finally:
        await engine.dispose()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    parser = argparse.ArgumentParser(description="Import startups from a CSV file")
    parser.add_argument("--csv", required=True, help="path to the CSV file")
    parser.add_argument("--mapping", default=None, help="JSON file with {field: column}")
    parser.add_argument("--database-url", default=DATABASE_URL)
    parser.add_argument("--recalculate", action="store_true", help="recalculate ranks after import")
    args = parser.parse_args()

    asyncio.run(run_import(args.csv, load_mapping(args.mapping), args.database_url, args.recalculate))


if __name__ == "__main__":
    main()
