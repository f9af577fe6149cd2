"""
Pydantic Schemas for Request/Response Validation

Wire payloads of the HTTP API that are not domain models themselves.
Orders, drafts, toppings and drinks are served straight from
``cafe_orders.models``.

Author: Khalil Bannouri
Version: 1.0.0
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from cafe_orders.models import CamelModel, OrderStatus


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class StatusUpdate(CamelModel):
    """Barista board status change."""
    order_status: OrderStatus = Field(..., examples=["Brewing"])


class FeedbackCreate(CamelModel):
    """One-time rating of a delivered order."""
    # Checked by the lifecycle rules so that 4.5 or true are rejected, not coerced
    rating: Any = Field(..., examples=[5])
    comment: Optional[str] = Field(None, max_length=1000, examples=["Perfect flat white"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class IdentityResponse(CamelModel):
    """The caller's anonymous customer identity."""
    customer_id: str
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_new: bool = False


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None
    retryable: Optional[bool] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage_backend: str
    order_store: str
    feed: Optional[str] = None
    timestamp: datetime
