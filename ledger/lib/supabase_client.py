"""
Supabase Client Helper for the client ledger.
Provides the async connection, table naming, and query execution helpers.

Usage:
    from ledger.lib.supabase_client import get_client, monthly_table_name, run_query

    client = await get_client()
    rows = await run_query(
        client.table(monthly_table_name(0)).select("*").eq("year", 2024),
        table="clients_january", action="select",
    )
"""
import os
from pathlib import Path
from typing import Any, Dict, List

from dotenv import load_dotenv

from ledger.lib.errors import ConfigError, DataAccessError, InvalidArgument, remote_message
from ledger.lib.logger import setup_logger

logger = setup_logger(__name__)

# Load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(PROJECT_ROOT / ".env")

SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_KEY = (
    os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
    or os.environ.get("SUPABASE_KEY", "")
)
PDF_BUCKET = os.environ.get("PDF_BUCKET", "pdfs")

MONTHS = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
GLOBAL_TABLE = "clients"

_client = None


async def get_client():
    """Create and return the async Supabase client (singleton)."""
    global _client
    if _client is not None:
        return _client

    if not SUPABASE_URL or not SUPABASE_KEY:
        raise ConfigError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in .env"
        )

    from supabase import acreate_client
    _client = await acreate_client(SUPABASE_URL, SUPABASE_KEY)
    logger.info("Supabase client connected to %s", SUPABASE_URL)
    return _client


def monthly_table_name(month_index: int) -> str:
    """Table for a zero-based month index, e.g. 0 -> 'clients_january'."""
    if isinstance(month_index, bool) or not isinstance(month_index, int) \
            or not 0 <= month_index < len(MONTHS):
        raise InvalidArgument(
            f"month_index must be 0-11, got {month_index!r}", field="month_index",
        )
    return f"{GLOBAL_TABLE}_{MONTHS[month_index]}"


def monthly_table_names() -> List[str]:
    """All twelve monthly tables, January first."""
    return [f"{GLOBAL_TABLE}_{month}" for month in MONTHS]


async def run_query(query: Any, table: str, action: str) -> List[Dict]:
    """
    Execute a postgrest query builder and return its rows.

    Args:
        query: Built (not yet executed) query.
        table: Table name, for logging and error details.
        action: Short verb ("select", "insert", ...) for logging.

    Returns:
        List of row dicts (empty when the service returns none).

    Raises:
        DataAccessError: The remote call failed; carries the remote message.
    """
    try:
        result = await query.execute()
    except Exception as e:
        message = remote_message(e)
        logger.error("Supabase %s failed on %s: %s", action, table, message)
        raise DataAccessError(message, table=table) from e
    if result is None:
        return []
    return result.data or []
