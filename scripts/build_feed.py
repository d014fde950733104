#!/usr/bin/env python3
"""
Generate a store's feed once and write it to disk.

Usage:
    build_feed.py <store_id> [output.xml] [access_token]

Without an access token the configured token store (redis or memory) is used.
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import nubefeed modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from nubefeed.config import get_settings
from nubefeed.deps import build_feed_service, close_clients, get_http_client, get_token_store
from nubefeed.core.feed import StoreNotInstalledError
from nubefeed.core.tn_client import TiendanubeError
from nubefeed.core.token_store import MemoryTokenStore


async def build(store_id: str, output: Path, access_token: str = "") -> int:
    settings = get_settings()
    if access_token:
        token_store = MemoryTokenStore()
        await token_store.save(store_id, access_token)
    else:
        token_store = get_token_store()

    # No shared cache: always regenerate
    service = build_feed_service(settings, token_store, http_client=get_http_client())
    try:
        result = await service.get_feed(store_id)
    finally:
        await close_clients()

    output.write_bytes(result.xml_bytes)
    return result.item_count or 0


def main():
    """Build the feed for the store given on the command line."""
    if len(sys.argv) < 2:
        print(__doc__, file=sys.stderr)
        sys.exit(2)

    store_id = sys.argv[1]
    output = Path(sys.argv[2]) if len(sys.argv) > 2 else Path(f"feed_{store_id}.xml")
    access_token = sys.argv[3] if len(sys.argv) > 3 else ""

    try:
        count = asyncio.run(build(store_id, output, access_token))
    except StoreNotInstalledError as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)
    except TiendanubeError as e:
        print(f"❌ Tiendanube API error (status={e.status_code}): {e}", file=sys.stderr)
        sys.exit(1)

    print(f"✅ Wrote {count} items to {output}")


if __name__ == "__main__":
    main()
