"""
Operator CLI for recordgate.

Usage:
    recordgate superuser-token --subject ops@example.com
    recordgate init-db
    recordgate seed collections.json
    recordgate serve

Seed file format:
    {
      "collections": [
        {"name": "devices", "type": "auth", "fields": ["email", "ips"],
         "records": [{"email": "printer@example.com", "ips": ["10.0.0.0/24"]}]}
      ]
    }

Environment variables:
    RECORDGATE_SECRET_KEY  - token signing key (required)
    DATABASE_URL           - PostgreSQL DSN (init-db / seed)
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from recordgate.core.config import get_settings
from recordgate.core.records import COLLECTION_TYPES, Collection, Record, new_id
from recordgate.core.security import create_superuser_token


def cmd_superuser_token(args: argparse.Namespace) -> int:
    print(create_superuser_token(args.subject))
    return 0


def _require_store():
    from recordgate.core.database import PostgresRecordStore

    settings = get_settings()
    if not settings.database_url:
        print("Error: DATABASE_URL is not set", file=sys.stderr)
        return None
    return PostgresRecordStore(
        settings.database_url,
        min_size=1,
        max_size=2,
        cache_ttl=0,
    )


async def _init_db() -> int:
    store = _require_store()
    if store is None:
        return 1
    if not await store.connect(max_retries=1):
        print("Error: could not connect to the database", file=sys.stderr)
        return 1
    await store.disconnect()
    print("Schema is ready")
    return 0


async def _seed(path: Path) -> int:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        print(f"Error: cannot read seed file {path}: {e}", file=sys.stderr)
        return 1

    store = _require_store()
    if store is None:
        return 1
    if not await store.connect(max_retries=1):
        print("Error: could not connect to the database", file=sys.stderr)
        return 1

    collections = records = 0
    try:
        for item in payload.get("collections", []):
            if item.get("type", "base") not in COLLECTION_TYPES:
                print(f"Skipping {item.get('name')}: unknown type {item.get('type')}", file=sys.stderr)
                continue
            collection = Collection(
                id=item.get("id") or new_id(),
                name=item["name"],
                type=item.get("type", "base"),
                fields=list(item.get("fields", [])),
            )
            await store.upsert_collection(collection)
            collections += 1
            for data in item.get("records", []):
                record_id = data.pop("id", None) or new_id()
                await store.upsert_record(Record(
                    id=record_id,
                    collection_id=collection.id,
                    collection_name=collection.name,
                    data=data,
                ))
                records += 1
    finally:
        await store.disconnect()

    print(f"Seeded {collections} collection(s), {records} record(s)")
    return 0


def cmd_init_db(_args: argparse.Namespace) -> int:
    return asyncio.run(_init_db())


def cmd_seed(args: argparse.Namespace) -> int:
    return asyncio.run(_seed(Path(args.file)))


def cmd_serve(_args: argparse.Namespace) -> int:
    from recordgate.main import run

    run()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="recordgate",
        description="recordgate operator commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    st = subparsers.add_parser("superuser-token", help="Print a superuser token for /api/logs")
    st.add_argument("--subject", default="superuser", help="Token subject (default: superuser)")
    st.set_defaults(func=cmd_superuser_token)

    subparsers.add_parser("init-db", help="Create the PostgreSQL schema").set_defaults(func=cmd_init_db)

    sd = subparsers.add_parser("seed", help="Load collections and records from a JSON file")
    sd.add_argument("file", help="Path to the seed JSON file")
    sd.set_defaults(func=cmd_seed)

    subparsers.add_parser("serve", help="Run the HTTP service").set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
