#!/usr/bin/env python3
"""Run a CSV product import directly against the configured database.

Usage:
    python scripts/run_import.py products.csv --mode overwrite
"""
import asyncio
import argparse
import json
import sys

from catalog_import.db.base import engine
from catalog_import.errors.exceptions import DataIngestionError
from catalog_import.services.importer.pipeline import import_csv


async def run(file_path: str, mode: str) -> int:
    try:
        result = await import_csv(file_path, mode)
    except DataIngestionError as e:
        print(f"❌ Import failed: {e.message}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 2


def main():
    parser = argparse.ArgumentParser(description="Import products from a CSV file")
    parser.add_argument("file", help="Path to the CSV file")
    parser.add_argument(
        "--mode",
        default="skip",
        help="'overwrite' to update matching products; anything else skips them"
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.file, args.mode)))


if __name__ == "__main__":
    main()
