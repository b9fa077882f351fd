"""
Client Ledger — Dashboard Data Functions
==========================================
The function surface used by the dashboard UI. Each function runs against
the shared async Supabase client from `get_client()`; build a
`ClientDashboard` with your own client to inject a different one.

Usage:
    from ledger.dashboard import fetch_monthly_clients, add_monthly_client

    rows = await fetch_monthly_clients(0, 2024)          # January 2024
    row = await add_monthly_client(0, 2024, {"name": "Jane Doe", ...})
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from ledger.aggregator import ClientAggregator
from ledger.global_clients import GlobalClientRepository
from ledger.global_sync import GlobalClientSynchronizer
from ledger.lib.supabase_client import get_client
from ledger.monthly_clients import MonthlyClientRepository
from ledger.pdf_storage import PdfUploader


class ClientDashboard:
    """Wires the repositories, synchronizer and uploader around one client."""

    def __init__(self, client, bucket: str = None, raise_on_sync_error: bool = True):
        self.client = client
        self.aggregator = ClientAggregator(client)
        self.synchronizer = GlobalClientSynchronizer(client, self.aggregator)
        self.monthly = MonthlyClientRepository(
            client, self.synchronizer, raise_on_sync_error=raise_on_sync_error,
        )
        self.global_clients = GlobalClientRepository(client)
        self.uploader = PdfUploader(client, bucket=bucket)

    async def fetch_monthly_clients(self, month_index: int, year: int) -> List[Dict]:
        return await self.monthly.list_for_period(month_index, year)

    async def add_monthly_client(
        self, month_index: int, year: int, record: Dict[str, Any],
    ) -> Optional[Dict]:
        return await self.monthly.add(month_index, year, record)

    async def update_monthly_client(
        self, month_index: int, year: int, row_id: str, updates: Dict[str, Any],
    ) -> Dict:
        return await self.monthly.update(month_index, year, row_id, updates)

    async def delete_monthly_client(self, month_index: int, year: int, row_id: str) -> bool:
        return await self.monthly.delete(month_index, year, row_id)

    async def fetch_all_clients(self) -> List[Dict]:
        return await self.global_clients.list_all()

    async def delete_client(self, name: str) -> bool:
        return await self.global_clients.delete_by_name(name)

    async def upload_pdf(self, content: Union[bytes, str], path: str) -> str:
        return await self.uploader.upload(content, path)


_dashboard: Optional[ClientDashboard] = None


async def get_dashboard() -> ClientDashboard:
    """Dashboard bound to the shared Supabase client."""
    global _dashboard
    if _dashboard is None:
        _dashboard = ClientDashboard(await get_client())
    return _dashboard


async def fetch_monthly_clients(month_index: int, year: int) -> List[Dict]:
    """Rows of one month for one year, newest first."""
    return await (await get_dashboard()).fetch_monthly_clients(month_index, year)


async def add_monthly_client(month_index: int, year: int, record: Dict[str, Any]) -> Optional[Dict]:
    """Insert a monthly row; returns the stored row."""
    return await (await get_dashboard()).add_monthly_client(month_index, year, record)


async def update_monthly_client(
    month_index: int, year: int, row_id: str, updates: Dict[str, Any],
) -> Dict:
    """Update a monthly row; returns the stored row."""
    return await (await get_dashboard()).update_monthly_client(month_index, year, row_id, updates)


async def delete_monthly_client(month_index: int, year: int, row_id: str) -> bool:
    return await (await get_dashboard()).delete_monthly_client(month_index, year, row_id)


async def fetch_all_clients() -> List[Dict]:
    """Global client rows, newest first."""
    return await (await get_dashboard()).fetch_all_clients()


async def delete_client(name: str) -> bool:
    """Remove a client from every monthly table and the global table."""
    return await (await get_dashboard()).delete_client(name)


async def upload_pdf(content: Union[bytes, str], path: str) -> str:
    """Upload a PDF and return its public URL."""
    return await (await get_dashboard()).upload_pdf(content, path)
