"""
CRUD over the twelve clients_<month> tables.

Every successful write is followed by a synchronous refresh of the
matching global row. The monthly write is never undone when that refresh
fails.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ledger.field_mapper import is_temporary_id, map_client_for_db
from ledger.global_sync import GlobalClientSynchronizer
from ledger.lib.errors import ClientNotFoundError, DataAccessError, SyncError
from ledger.lib.logger import setup_logger
from ledger.lib.supabase_client import monthly_table_name, run_query

logger = setup_logger(__name__)


class MonthlyClientRepository:
    """Reads and writes monthly client rows, keyed by (month, year, id)."""

    def __init__(
        self,
        client,
        synchronizer: GlobalClientSynchronizer = None,
        raise_on_sync_error: bool = True,
    ):
        self.client = client
        self.synchronizer = synchronizer or GlobalClientSynchronizer(client)
        self.raise_on_sync_error = raise_on_sync_error

    async def _sync(self, record: Dict[str, Any]) -> None:
        try:
            await self.synchronizer.sync_after_write(record)
        except Exception as e:
            name = record.get("name")
            logger.error("Global sync failed for %s: %s", name, e)
            if self.raise_on_sync_error:
                raise SyncError(name, e) from e

    async def _sync_delete(self, name: str) -> None:
        try:
            await self.synchronizer.sync_after_delete(name)
        except Exception as e:
            logger.error("Global cleanup failed for %s: %s", name, e)
            if self.raise_on_sync_error:
                raise SyncError(name, e) from e

    async def list_for_period(self, month_index: int, year: int) -> List[Dict]:
        """All rows of a month for one year, newest first."""
        table = monthly_table_name(month_index)
        query = (
            self.client.table(table)
            .select("*")
            .eq("year", year)
            .order("created_at", desc=True)
        )
        return await run_query(query, table=table, action="select")

    async def add(self, month_index: int, year: int, record: Dict[str, Any]) -> Optional[Dict]:
        """
        Insert a client row and refresh its global row.

        Placeholder ids ("temp_...") are dropped so storage assigns one.
        """
        table = monthly_table_name(month_index)
        row = map_client_for_db(record)
        if is_temporary_id(row.get("id")):
            del row["id"]
        row["year"] = year

        inserted = await run_query(
            self.client.table(table).insert([row]), table=table, action="insert",
        )
        logger.info("Added %s to %s (%s)", row["name"], table, year)

        await self._sync(record)
        return inserted[0] if inserted else None

    async def update(
        self, month_index: int, year: int, row_id: str, updates: Dict[str, Any],
    ) -> Dict:
        """
        Merge the supplied fields into the row (row_id, year).

        Raises:
            ClientNotFoundError: No row matched; nothing is synced.
        """
        table = monthly_table_name(month_index)
        values = map_client_for_db(updates, partial=True)
        # An explicit premium is stored exactly as given
        if "policyPremium" in updates:
            premium = updates["policyPremium"]
            values["policypremium"] = "" if premium is None else str(premium)

        query = (
            self.client.table(table)
            .update(values)
            .eq("id", row_id)
            .eq("year", year)
        )
        updated = await run_query(query, table=table, action="update")
        if not updated:
            raise ClientNotFoundError(table, row_id, year)
        logger.info("Updated %s in %s (%s)", row_id, table, year)

        row = updated[0]
        await self._sync(updates if updates.get("name") else row)
        return row

    async def delete(self, month_index: int, year: int, row_id: str) -> bool:
        """
        Delete the row (row_id, year) and refresh or remove its global row.

        A failed pre-read still deletes the row but skips the global cleanup.
        """
        table = monthly_table_name(month_index)
        try:
            existing = await run_query(
                self.client.table(table).select("*").eq("id", row_id).eq("year", year).limit(1),
                table=table, action="select",
            )
        except DataAccessError as e:
            logger.warning("Could not read %s before delete, skipping global cleanup: %s", row_id, e)
            existing = []

        await run_query(
            self.client.table(table).delete().eq("id", row_id).eq("year", year),
            table=table, action="delete",
        )
        logger.info("Deleted %s from %s (%s)", row_id, table, year)

        if existing and existing[0].get("name"):
            await self._sync_delete(existing[0]["name"])
        return True
