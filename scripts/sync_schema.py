#!/usr/bin/env python3
"""Create or update the PocketBase collections used by the todo API.

Usage:
    PYTHONPATH=. python scripts/sync_schema.py [POCKETBASE_URL]
"""

import asyncio
import logging
import sys

from src.core.config import settings
from src.core.schema import COLLECTIONS, sync_schema


async def main(url: str | None) -> None:
    admin_email = settings.require_credential("pocketbase_admin_email", "PocketBase Admin Email")
    admin_password = settings.require_credential("pocketbase_admin_password", "PocketBase Admin Password")

    await sync_schema(pocketbase_url=url, admin_email=admin_email, admin_password=admin_password)
    print(f"Synced collections: {', '.join(COLLECTIONS)}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None))
