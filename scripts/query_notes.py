#!/usr/bin/env python3
"""
CLI for talking to the notes service with the server's configuration.

Usage examples:
  python query_notes.py --query "Plan for Summer"
  python query_notes.py --upsert note-42 --text "Travel to Europe in July"
  python query_notes.py --delete note-42

The script prints a JSON result and exits with non-zero when the service
gave nothing back.
"""
import argparse
import json
import sys
from pathlib import Path

# Add parent directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from notestream.core.logging import get_logger
from notestream.models.events import Retrieved
from notestream.notes.client import get_notes_client

logger = get_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Query or edit notes")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--query", "-q", help="Term to look up")
    group.add_argument("--upsert", "-u", metavar="ID", help="Create or replace the note with this id")
    group.add_argument("--delete", "-d", metavar="ID", help="Delete the note with this id")
    parser.add_argument("--text", "-t", default="", help="Note text for --upsert")

    args = parser.parse_args()

    client = get_notes_client()

    if args.query:
        outcome = client.query(args.query)
        if not isinstance(outcome, Retrieved):
            print(json.dumps({"status": "unavailable", "reason": outcome.reason}))
            return 1
        print(outcome.result.model_dump_json(indent=2, exclude_none=True))
        return 0

    if args.upsert:
        result = client.upsert(args.upsert, args.text)
    else:
        result = client.delete(args.delete)

    if result is None:
        logger.error("Notes service call failed")
        print(json.dumps({"status": "error"}))
        return 1
    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
