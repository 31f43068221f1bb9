from pydantic import BaseModel, Field
import enum

class StatusLabel(str, enum.Enum):
    """Categorical outcome of a variant, recomputed on every call."""
    CONTROL = "Control"
    COLLECTING = "Collecting"
    WINNING = "Winning"
    LOSING = "Losing"
    PROMISING = "Promising"
    UNDERPERFORMING = "Underperforming"
    STABLE = "Stable"

class VariantCounts(BaseModel):
    """Aggregated event counts for a single variant."""
    impressions: int = 0
    conversions: int = 0

class VariantStat(BaseModel):
    """Detailed statistics for a single variant."""
    id: int
    variant: str
    color: str
    visitors: int
    conversions: int
    conversion_rate: float = Field(..., serialization_alias="conversionRate") # (conversions / visitors) * 100
    lift: float # Relative change vs control, in percent
    confidence: float # 0 - 100
    status: StatusLabel
