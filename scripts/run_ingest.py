#!/usr/bin/env python3
"""Run one ingestion over the configured feed sources."""

import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from newsmap.config.sources import load_sources
from newsmap.ingestion.orchestrator import ingest


def report(source_name, articles, error=None):
    if error:
        print(f"  [FAIL] {source_name}: {error}")
    else:
        print(f"  [OK]   {source_name}: {len(articles)} new articles")


def main():
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    sources = load_sources(config_path)

    print("\n" + "=" * 50)
    print(f"NEWS INGESTION - {len(sources)} sources")
    print("=" * 50 + "\n")

    articles = asyncio.run(ingest(sources, on_source_processed=report))

    scraped = sum(1 for a in articles if a.full_text)
    print(f"\nRESULTS: {len(articles)} articles, {scraped} with full text\n")
    for article in articles[:10]:
        print(f"  {article.pub_date or '--/--/----'}  [{article.source}] {article.title}")

    output = Path("articles.json")
    output.write_text(json.dumps([a.to_dict() for a in articles], ensure_ascii=False, indent=2), encoding="utf-8")
    print(f"\nSaved to {output}\n")


if __name__ == "__main__":
    main()
