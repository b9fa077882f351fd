"""
Keeps the global `clients` table in step with the monthly tables.

Each monthly write calls back in here; the global row for the affected
name is rebuilt from scratch out of every monthly row that still carries
that name.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from ledger.aggregator import ClientAggregator
from ledger.lib.logger import setup_logger
from ledger.lib.supabase_client import GLOBAL_TABLE, run_query
from models.client_models import GlobalClientRow

logger = setup_logger(__name__)


class GlobalClientSynchronizer:
    """Upserts or removes global rows after monthly mutations."""

    def __init__(self, client, aggregator: ClientAggregator = None):
        self.client = client
        self.aggregator = aggregator or ClientAggregator(client)

    async def sync_after_write(self, record: Dict[str, Any]) -> Optional[GlobalClientRow]:
        """
        Re-aggregate and upsert the global row for `record["name"]`.

        An empty aggregate leaves the global row untouched; only
        sync_after_delete removes global rows.
        """
        name = (record or {}).get("name")
        if not name:
            return None

        logger.info("Updating global client from monthly: %s", name)
        aggregate = await self.aggregator.aggregate_for_client(name)
        if aggregate is None:
            logger.info("No monthly rows for %s, global row left as is", name)
            return None

        query = self.client.table(GLOBAL_TABLE).upsert(
            aggregate.model_dump(), on_conflict="name",
        )
        await run_query(query, table=GLOBAL_TABLE, action="upsert")
        return aggregate

    async def sync_after_delete(self, name: str) -> Optional[GlobalClientRow]:
        """Delete the global row when no monthly rows remain, else refresh it."""
        aggregate = await self.aggregator.aggregate_for_client(name)
        table = self.client.table(GLOBAL_TABLE)

        if aggregate is None:
            logger.info("Last monthly row gone, deleting global client %s", name)
            await run_query(table.delete().eq("name", name), table=GLOBAL_TABLE, action="delete")
            return None

        values = aggregate.model_dump(exclude={"name"})
        await run_query(
            table.update(values).eq("name", name), table=GLOBAL_TABLE, action="update",
        )
        logger.info("Refreshed global client %s from remaining months", name)
        return aggregate

    async def resync(self, name: str) -> Optional[GlobalClientRow]:
        """Rebuild one global row from scratch: upsert it, or delete it if orphaned."""
        aggregate = await self.aggregator.aggregate_for_client(name)
        table = self.client.table(GLOBAL_TABLE)
        if aggregate is None:
            await run_query(table.delete().eq("name", name), table=GLOBAL_TABLE, action="delete")
            logger.info("Removed orphaned global client %s", name)
            return None
        await run_query(
            table.upsert(aggregate.model_dump(), on_conflict="name"),
            table=GLOBAL_TABLE, action="upsert",
        )
        return aggregate
