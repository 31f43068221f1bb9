from pydantic import BaseModel, Field
from typing import NamedTuple

class EventCount(NamedTuple):
    """One row of the grouped count query: (variant_id, event_kind, count)."""
    variant_id: int
    event_kind: str
    count: int

class EventCreate(BaseModel):
    """Schema for recording a storefront event."""
    variant_id: int
    event_type: str = Field(..., description="Type of event (e.g., 'impression', 'conversion', 'add_to_cart').")

# Event types the storefront may record. Only impressions and
# conversions (including the add_to_cart alias) count toward stats.
VALID_EVENT_TYPES = frozenset({"impression", "click", "add_to_cart", "conversion"})
