"""
Access to the global `clients` table, including the cascading delete
that removes a client from every monthly table as well.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List

from ledger.lib.errors import DataAccessError, InvalidArgument, remote_message
from ledger.lib.logger import setup_logger
from ledger.lib.supabase_client import GLOBAL_TABLE, monthly_table_names, run_query

logger = setup_logger(__name__)


class GlobalClientRepository:
    """Fetch-all and delete-by-name over the global clients table."""

    def __init__(self, client):
        self.client = client

    async def list_all(self) -> List[Dict]:
        """Every global row, newest first."""
        query = (
            self.client.table(GLOBAL_TABLE)
            .select("*")
            .order("created_at", desc=True)
        )
        return await run_query(query, table=GLOBAL_TABLE, action="select")

    async def _delete_partition(self, table: str, name: str) -> List[Dict]:
        query = self.client.table(table).delete().eq("name", name)
        return await run_query(query, table=table, action="delete")

    async def delete_by_name(self, name: str) -> bool:
        """
        Remove a client from all twelve monthly tables, then from the
        global table.

        Raises:
            InvalidArgument: `name` is empty. No remote call is made.
            DataAccessError: Any partition delete failed (the global row is
                kept), or the global delete failed.
        """
        if not name:
            raise InvalidArgument("Client name is required", field="name")

        tables = monthly_table_names()
        results = await asyncio.gather(
            *(self._delete_partition(table, name) for table in tables),
            return_exceptions=True,
        )

        failures = []
        for table, result in zip(tables, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures.append(f"{table}: {remote_message(result)}")
        if failures:
            raise DataAccessError(
                f"Failed to delete {name!r} from {len(failures)} monthly table(s): "
                + "; ".join(failures),
            )

        query = self.client.table(GLOBAL_TABLE).delete().eq("name", name)
        await run_query(query, table=GLOBAL_TABLE, action="delete")
        logger.info("Deleted client %s from all tables", name)
        return True
