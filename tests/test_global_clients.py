"""Tests for the global clients table and the cascading delete."""

import pytest

from ledger.global_clients import GlobalClientRepository
from ledger.lib.errors import DataAccessError, InvalidArgument
from ledger.lib.supabase_client import monthly_table_names


class TestListAll:
    @pytest.mark.asyncio
    async def test_newest_first(self, supabase, db):
        db.seed("clients", {"name": "First"}, {"name": "Second"})

        rows = await GlobalClientRepository(supabase).list_all()

        assert [r["name"] for r in rows] == ["Second", "First"]

    @pytest.mark.asyncio
    async def test_remote_failure_raises(self, supabase, db):
        db.fail("clients", "JWT expired")

        with pytest.raises(DataAccessError, match="JWT expired"):
            await GlobalClientRepository(supabase).list_all()


class TestDeleteByName:
    @pytest.mark.asyncio
    async def test_empty_name_makes_no_remote_calls(self, supabase, db):
        with pytest.raises(InvalidArgument):
            await GlobalClientRepository(supabase).delete_by_name("")
        assert db.calls == []

    @pytest.mark.asyncio
    async def test_removes_client_everywhere(self, supabase, db):
        db.seed("clients_january", {"name": "A"}, {"name": "B"})
        db.seed("clients_december", {"name": "A"})
        db.seed("clients", {"name": "A"}, {"name": "B"})

        assert await GlobalClientRepository(supabase).delete_by_name("A") is True

        assert [r["name"] for r in db.rows("clients_january")] == ["B"]
        assert db.rows("clients_december") == []
        assert [r["name"] for r in db.rows("clients")] == ["B"]
        deleted = {table for table, op in db.calls if op == "delete"}
        assert deleted == set(monthly_table_names()) | {"clients"}

    @pytest.mark.asyncio
    async def test_partition_failure_is_surfaced_and_global_row_kept(self, supabase, db):
        db.seed("clients_june", {"name": "A"})
        db.seed("clients", {"name": "A"})
        db.fail("clients_june", "statement timeout", op="delete")

        with pytest.raises(DataAccessError) as exc_info:
            await GlobalClientRepository(supabase).delete_by_name("A")

        assert "clients_june: statement timeout" in str(exc_info.value)
        assert [r["name"] for r in db.rows("clients")] == ["A"]

    @pytest.mark.asyncio
    async def test_global_delete_failure_raises_after_partitions_cleared(self, supabase, db):
        db.seed("clients_june", {"name": "A"})
        db.seed("clients", {"name": "A"})
        db.fail("clients", "row is locked", op="delete")

        with pytest.raises(DataAccessError, match="row is locked"):
            await GlobalClientRepository(supabase).delete_by_name("A")

        assert db.rows("clients_june") == []
        assert [r["name"] for r in db.rows("clients")] == ["A"]
