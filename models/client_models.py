"""
Client Ledger — Pydantic Models
================================

Storage-shaped rows for the monthly client tables and the global
`clients` table, plus the closed Product enumeration.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Product(str, Enum):
    """Products a client can hold. The first member is the fallback."""
    VALUE_FUNERAL_PLAN = "Value Funeral Plan"
    ENHANCED_PRIORITY_PLAN = "Enhanced Priority Plan"
    ALL_IN_ONE_FUNERAL = "All in One Funeral"
    IMMEDIATE_LIFE_COVER = "Immediate Life Cover"


DEFAULT_PRODUCT = Product.VALUE_FUNERAL_PLAN


# ─── Monthly Rows ───────────────────────────────────────────

class MonthlyClientRow(BaseModel):
    """A client row in one of the clients_<month> tables."""
    name: str = ""
    location: str = ""
    deductiondate: str = ""
    policiescount: int = 0
    scheduledocsurl: List[str] = Field(default_factory=list)
    loadocurl: List[str] = Field(default_factory=list)
    pdfdocsurl: List[str] = Field(default_factory=list)
    policynumbers: List[str] = Field(default_factory=list)
    issuedate: str = ""
    products: List[Product] = Field(default_factory=list)
    year: int
    policypremium: str = ""
    client_id: Optional[str] = None
    created_at: Optional[str] = None
    id: Optional[str] = None


# ─── Global Rows ────────────────────────────────────────────

class GlobalClientRow(BaseModel):
    """Aggregate of every monthly row sharing one client name."""
    name: str
    location: Optional[str] = None
    products: List[str] = Field(default_factory=list)
    policies_count: int = 0
    policy_numbers: List[str] = Field(default_factory=list)
    policy_premium: float = 0.0
