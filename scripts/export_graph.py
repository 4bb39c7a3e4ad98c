#!/usr/bin/env python3
"""Build the constellation graph and write it as JSON.

Run from the project root:
  python scripts/export_graph.py --output graph.json
  python scripts/export_graph.py --input keywords.json --neighbors <node_id>

Without --input, keywords are read from Notion using NOTION_API_KEY and
NOTION_KEYWORDS_DB_ID from .env. With --input, the file must hold a JSON
array of keyword records (id, term, orientation, artifact_role, weight,
active, notes, source); entries that fail validation are skipped.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from pydantic import ValidationError

from constellation.config import get_settings
from constellation.models.schemas import GraphConfig, RawKeywordRecord
from constellation.services.graph.builder import GraphService
from constellation.services.keyword_store import NotionKeywordStore

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


async def _load_from_notion() -> tuple[list[RawKeywordRecord], GraphConfig]:
    settings = get_settings()
    store = NotionKeywordStore(
        api_key=settings.notion_api_key,
        database_id=settings.notion_keywords_db_id,
        notion_version=settings.notion_version,
        timeout=settings.notion_timeout_seconds,
    )
    try:
        keywords = await store.fetch_keywords()
    finally:
        await store.close()
    return [kw.to_record() for kw in keywords], settings.graph_config()


def _load_from_file(path: Path) -> list[RawKeywordRecord]:
    """Read a JSON array of records, skipping entries that fail validation."""
    records = []
    skipped = 0
    for item in json.loads(path.read_text(encoding="utf-8")):
        try:
            records.append(RawKeywordRecord.model_validate(item))
        except ValidationError as e:
            skipped += 1
            logger.debug("Skipping malformed record %r: %s", item, e)
    if skipped:
        logger.debug("Skipped %d malformed records in %s", skipped, path)
    return records


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export the constellation graph as JSON")
    parser.add_argument("--input", type=Path, help="JSON file of keyword records (default: Notion)")
    parser.add_argument("--output", type=Path, help="Output file (default: stdout)")
    parser.add_argument("--neighbors", metavar="NODE_ID", help="Only export this node's neighbors")
    parser.add_argument("-k", type=int, default=5, help="Neighbors to export with --neighbors")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.input:
        records, config = _load_from_file(args.input), GraphConfig()
    else:
        records, config = asyncio.run(_load_from_notion())

    service = GraphService(config)
    if args.neighbors:
        neighbors = service.neighbors(records, args.neighbors, k=args.k)
        payload = {
            "nodeId": args.neighbors,
            "neighbors": [n.model_dump(by_alias=True) for n in neighbors],
        }
    else:
        graph = service.build(records)
        logger.info("Graph has %d nodes and %d edges", len(graph.nodes), len(graph.edges))
        payload = graph.model_dump(by_alias=True)

    text = json.dumps(payload, ensure_ascii=False, indent=2)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %s", args.output)
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
