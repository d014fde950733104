"""
Store schemas.
"""

from pydantic import BaseModel
from typing import Dict, List, Optional, Any


class StoreStatus(BaseModel):
    """Installation status of a store (replaces the HTML dashboard)."""
    store_id: str
    installed: bool
    feed_url: Optional[str] = None
    install_url: str


class TokenSummary(BaseModel):
    """Stored token metadata, without the token itself."""
    store_id: str
    created_at: str


class DomainDebugResponse(BaseModel):
    """Resolved public domain for a store."""
    store_id: str
    domain: str


class MetricsResponse(BaseModel):
    """Per-store feed counters."""
    stores: Dict[str, Dict[str, Any]]


class TokenListResponse(BaseModel):
    """Stored tokens, newest first."""
    rows: List[TokenSummary]
