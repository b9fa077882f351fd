"""
Field mapper: application-shaped client records -> monthly storage rows.

Callers send camelCase fields (policiesCount, scheduleDocsUrl, ...) or the
canonical lowercase column names; camelCase wins when both carry a value.
The mapping is pure and never raises on dirty input.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from models.client_models import DEFAULT_PRODUCT, MonthlyClientRow, Product

TEMP_ID_PREFIX = "temp_"

_VALID_PRODUCTS = {p.value: p for p in Product}

# Column -> accepted input keys, camelCase first
COLUMN_SOURCES = {
    "name": ("name",),
    "location": ("location",),
    "deductiondate": ("deductionDate", "deductiondate"),
    "policiescount": ("policiesCount", "policiescount"),
    "scheduledocsurl": ("scheduleDocsUrl", "scheduledocsurl"),
    "loadocurl": ("loaDocUrl", "loadocurl"),
    "pdfdocsurl": ("pdfDocsUrl", "pdfdocsurl"),
    "policynumbers": ("policyNumbers", "policynumbers"),
    "issuedate": ("issueDate", "issuedate"),
    "products": ("products",),
    "year": ("year",),
    "policypremium": ("policyPremium", "policypremium"),
    "client_id": ("client_id", "clientId"),
    "created_at": ("created_at", "createdAt"),
    "id": ("id",),
}


def validate_product(value: Any) -> Product:
    """Return the matching Product, or the first member for anything else."""
    if isinstance(value, Product):
        return value
    if isinstance(value, str) and value in _VALID_PRODUCTS:
        return _VALID_PRODUCTS[value]
    return DEFAULT_PRODUCT


def _pick(record: Dict[str, Any], *keys: str) -> Any:
    """First non-empty value among keys, in order."""
    for key in keys:
        value = record.get(key)
        if value not in (None, "", [], ()):
            return value
    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _as_list(value: Any) -> List[str]:
    """Sequences pass through, a single scalar is wrapped, empty -> []."""
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def _safe_int(val: Any) -> Optional[int]:
    """Convert a value to int, returning None on failure."""
    if val is None or val == "" or isinstance(val, bool):
        return None
    try:
        return int(float(val))
    except (ValueError, TypeError, OverflowError):
        return None


def map_client_for_db(client: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Translate a client record into a monthly-table row.

    Args:
        client: Partial application record, camelCase or lowercase keys.
        partial: Keep only the columns the caller supplied a key for.

    Returns:
        Row dict with every monthly column set (defaults filled in), or
        only the supplied columns when `partial`. `id`, `client_id` and
        `created_at` are present only when the caller supplied them.
    """
    products = client.get("products")
    if products is None or products == "":
        products = []
    elif not isinstance(products, (list, tuple)):
        products = [products]

    row = MonthlyClientRow(
        name=_text(client.get("name")),
        location=_text(client.get("location")),
        deductiondate=_text(_pick(client, "deductionDate", "deductiondate")),
        policiescount=_safe_int(_pick(client, "policiesCount", "policiescount")) or 0,
        scheduledocsurl=_as_list(_pick(client, "scheduleDocsUrl", "scheduledocsurl")),
        loadocurl=_as_list(_pick(client, "loaDocUrl", "loadocurl")),
        pdfdocsurl=_as_list(_pick(client, "pdfDocsUrl", "pdfdocsurl")),
        policynumbers=_as_list(_pick(client, "policyNumbers", "policynumbers")),
        issuedate=_text(_pick(client, "issueDate", "issuedate")),
        products=[validate_product(p) for p in products],
        year=_safe_int(client.get("year")) or datetime.now().year,
        policypremium=_text(_pick(client, "policyPremium", "policypremium")),
        client_id=_optional_text(_pick(client, "client_id", "clientId")),
        created_at=_optional_text(_pick(client, "created_at", "createdAt")),
    )

    client_id = client.get("id")
    if isinstance(client_id, str) and client_id:
        row.id = client_id

    values = row.model_dump(mode="json", exclude_none=True)
    if partial:
        values = {
            column: value for column, value in values.items()
            if any(key in client for key in COLUMN_SOURCES[column])
        }
    return values


def is_temporary_id(row_id: Any) -> bool:
    """Client-side placeholder ids look like 'temp_<something>'."""
    return isinstance(row_id, str) and row_id.startswith(TEMP_ID_PREFIX)
