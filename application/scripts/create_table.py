#!/usr/bin/env python3
"""Create the DynamoDB table backing the studio store. Needs `pip install -e .`; set DYNAMODB_ENDPOINT_URL for local."""

import sys
from pathlib import Path

from dotenv import load_dotenv

from braids_studio import store

_app_dir = Path(__file__).resolve().parent.parent
_repo_root = _app_dir.parent
load_dotenv(_app_dir / ".env")
load_dotenv(_repo_root / ".env")
load_dotenv(_repo_root / ".env.local")


def main():
    table = store._table_name()
    try:
        created = store.create_table()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if created:
        print(f"Created table: {table}")
    else:
        print(f"Table {table} already exists.", file=sys.stderr)


if __name__ == "__main__":
    main()
