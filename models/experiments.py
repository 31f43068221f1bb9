from pydantic import BaseModel, Field
from typing import Any

class VariantResponse(BaseModel):
    """A variant and its display configuration."""
    id: int
    name: str = Field(..., description="Variant name (e.g., 'A'). 'A' is the control.")
    config: dict[str, Any] | None = None

    class Config:
        from_attributes = True
