"""
Global Clients Resync
=====================
Rebuilds the global `clients` table from the twelve monthly tables.
Use after manual edits in the database, or when a sync step failed.

Usage:
    python -m ledger.resync_global_clients                 # every client
    python -m ledger.resync_global_clients --name "Jane Doe"
    python -m ledger.resync_global_clients --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional, Set

from ledger.aggregator import ClientAggregator
from ledger.global_sync import GlobalClientSynchronizer
from ledger.lib.errors import LedgerError
from ledger.lib.logger import setup_logger
from ledger.lib.supabase_client import GLOBAL_TABLE, get_client, monthly_table_names, run_query

logger = setup_logger("resync_global_clients")

PAGE_SIZE = 1000


async def fetch_names(client, table: str) -> Set[str]:
    """Distinct non-empty names in a table, paging through all rows."""
    names: Set[str] = set()
    offset = 0
    while True:
        query = (
            client.table(table)
            .select("name")
            .order("name")
            .range(offset, offset + PAGE_SIZE - 1)
        )
        rows = await run_query(query, table=table, action="select")
        names.update(row["name"] for row in rows if row.get("name"))
        if len(rows) < PAGE_SIZE:
            return names
        offset += PAGE_SIZE


async def collect_names(client) -> tuple[Set[str], Set[str]]:
    """(names in any monthly table, names in the global table)."""
    monthly = await asyncio.gather(*(fetch_names(client, t) for t in monthly_table_names()))
    monthly_names = set().union(*monthly)
    global_names = await fetch_names(client, GLOBAL_TABLE)
    return monthly_names, global_names


async def resync(client, names: Optional[List[str]] = None, dry_run: bool = False) -> int:
    """
    Re-aggregate the given names (default: every known name).

    Returns:
        Number of clients that failed to resync.
    """
    synchronizer = GlobalClientSynchronizer(client, ClientAggregator(client))

    if names:
        targets = sorted(set(names))
    else:
        monthly_names, global_names = await collect_names(client)
        orphans = global_names - monthly_names
        logger.info(
            "Found %d monthly clients, %d global rows, %d orphaned",
            len(monthly_names), len(global_names), len(orphans),
        )
        targets = sorted(monthly_names | global_names)

    if dry_run:
        logger.info("DRY RUN: no changes will be made")
        for name in targets:
            aggregate = await synchronizer.aggregator.aggregate_for_client(name)
            if aggregate is None:
                logger.info("  %s: delete global row", name)
            else:
                logger.info(
                    "  %s: %d policies, premium %.2f",
                    name, aggregate.policies_count, aggregate.policy_premium,
                )
        return 0

    failed = 0
    for name in targets:
        try:
            await synchronizer.resync(name)
        except LedgerError as e:
            logger.error("Resync failed for %s: %s", name, e)
            failed += 1

    logger.info("Resynced %d/%d clients", len(targets) - failed, len(targets))
    return failed


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Rebuild the global clients table")
    parser.add_argument("--name", action="append",
                        help="Resync only this client (repeatable)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show the aggregates without writing")
    args = parser.parse_args(argv)

    async def _run() -> int:
        client = await get_client()
        return await resync(client, names=args.name, dry_run=args.dry_run)

    logger.info("=== Global Clients Resync ===")
    failed = asyncio.run(_run())
    logger.info("=== Resync complete ===")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
