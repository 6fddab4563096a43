"""
Catalog Selector Updater

Run this script to rediscover result-card selectors for every site in a
search links JSON file and refresh the catalog.

Usage:
    python update_selectors.py data/search_links.json
    python update_selectors.py data/search_links.json --export data/links.json

Output:
    - Upserts working sites into the link store (settings.database_path)
    - Removes sites whose discovery failed
    - Optionally exports the refreshed catalog as JSON
"""

import argparse
import asyncio
import sys

from spyglass.core.backend import SearchBackend
from spyglass.core.config import settings
from spyglass.services.catalog_builder import load_search_links_json, save_links_json
from spyglass.services.logging_service import configure_logging


async def update_catalog(path: str, export_path: str = None) -> int:
    """Rebuild the catalog from a search links file. Returns the number of failures."""
    backend = SearchBackend.from_settings(settings)
    try:
        search_links = load_search_links_json(path)
        print(f"\n🔎 Discovering selectors for {len(search_links)} sites...")

        report = await backend.catalog_builder.rebuild(search_links, backend.link_store)

        if export_path:
            save_links_json(await backend.link_store.get_all(), export_path)
            print(f"\n💾 Catalog exported to: {export_path}")

        print("\n" + "=" * 60)
        print(f"✅ {report.success_count} sites updated")
        print(f"❌ {report.failure_count} sites failed")
        print("=" * 60)
        for url, reason in sorted(report.failures.items()):
            print(f"  - {url}: {reason}")
        print()

        return report.failure_count
    finally:
        await backend.aclose()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Rediscover card selectors for the site catalog")
    parser.add_argument("path", help="JSON file with SearchLink records")
    parser.add_argument("--export", dest="export_path", help="Write the refreshed catalog to this JSON file")
    args = parser.parse_args()

    configure_logging(settings.log_level)

    try:
        asyncio.run(update_catalog(args.path, args.export_path))
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
