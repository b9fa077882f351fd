"""
Cross-month aggregation of client rows.

A client (joined on `name`) may have rows in any of the twelve monthly
tables. The aggregate sums counts and premiums, unions product and policy
number lists in first-seen order, and takes `location` from the most
recently created row.
"""
from __future__ import annotations

import asyncio
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ledger.lib.logger import setup_logger
from ledger.lib.supabase_client import monthly_table_names, run_query
from models.client_models import GlobalClientRow

logger = setup_logger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# "75,50" with no "." is a decimal comma; every other comma groups thousands
_DECIMAL_COMMA = re.compile(r"^(\d+),(\d{1,2})$")
_STRIP_CHARS = re.compile(r"[R\s]")


def parse_premium(value: Any) -> float:
    """
    Parse a display premium such as "R 1,250.00" into a float.

    Unparsable, non-finite or non-positive values yield 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    text = _STRIP_CHARS.sub("", str(value))
    match = _DECIMAL_COMMA.match(text)
    if match:
        text = f"{match.group(1)}.{match.group(2)}"
    else:
        text = text.replace(",", "")
    try:
        premium = float(text)
    except ValueError:
        return 0.0
    if not math.isfinite(premium) or premium <= 0:
        return 0.0
    return premium


def _created_at(row: Dict[str, Any]) -> datetime:
    """Row creation time; missing or unreadable timestamps sort as the epoch."""
    value = row.get("created_at")
    if not value:
        return EPOCH
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _count(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (ValueError, TypeError, OverflowError):
        return 0


def _union(target: List[Any], values: Any) -> None:
    if not isinstance(values, (list, tuple)):
        return
    for value in values:
        if value not in target:
            target.append(value)


def aggregate_rows(name: str, rows: Iterable[Dict[str, Any]]) -> Optional[GlobalClientRow]:
    """
    Reduce monthly rows for one client into its global row.

    Returns None when there are no rows.
    """
    rows = list(rows)
    if not rows:
        return None

    # sorted() is stable, so equal timestamps keep fetch order
    latest = sorted(rows, key=_created_at, reverse=True)[0]

    products: List[str] = []
    policy_numbers: List[str] = []
    policies_count = 0
    premium = 0.0

    for row in rows:
        policies_count += _count(row.get("policiescount"))
        _union(products, row.get("products"))
        _union(policy_numbers, row.get("policynumbers"))
        premium += parse_premium(row.get("policypremium"))

    return GlobalClientRow(
        name=name,
        location=latest.get("location"),
        products=products,
        policies_count=policies_count,
        policy_numbers=policy_numbers,
        policy_premium=round(premium, 2),
    )


class ClientAggregator:
    """Fetches a client's rows from every monthly table and aggregates them."""

    def __init__(self, client):
        self.client = client

    async def _fetch_partition(self, table: str, name: str) -> List[Dict]:
        query = self.client.table(table).select("*").eq("name", name)
        return await run_query(query, table=table, action="select")

    async def fetch_monthly_rows(self, name: str) -> List[Dict]:
        """
        All monthly rows for `name`, January table first.

        A failed partition read is logged and contributes no rows.
        """
        tables = monthly_table_names()
        results = await asyncio.gather(
            *(self._fetch_partition(table, name) for table in tables),
            return_exceptions=True,
        )

        rows: List[Dict] = []
        for table, result in zip(tables, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Skipping %s while aggregating %r: %s", table, name, result)
                continue
            rows.extend(result)
        return rows

    async def aggregate_for_client(self, name: str) -> Optional[GlobalClientRow]:
        """Current aggregate for `name`, or None when no monthly rows remain."""
        rows = await self.fetch_monthly_rows(name)
        return aggregate_rows(name, rows)
