"""
Layout output models consumed by the grid-rendering layer.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field

from .post_models import PostId, SizeClass


class LaneId:
    """Layout tracks a placement can live in."""
    PRIMARY = "primary"
    COMPACT = "compact"


class GridSpan(BaseModel):
    """Column/row span of a grid cell."""
    columns: int = Field(ge=1)
    rows: int = Field(ge=1)


class CompactCard(BaseModel):
    """Fixed card box used by the compact (news) lane."""
    width: int = Field(description="Card width in px")
    height: int = Field(description="Card height in px")


class Placement(BaseModel):
    """Where and how big a ranked post is drawn."""
    post_id: PostId
    size_class: SizeClass
    grid_column_span: int = Field(description="Desktop column span")
    grid_row_span: int = Field(description="Desktop row span")
    responsive_overrides: Dict[int, GridSpan] = Field(
        default_factory=dict, description="max-width breakpoint (px) -> span"
    )
    lane_id: str = Field(default=LaneId.PRIMARY)
    lane_position: int = Field(default=0, description="0-based order inside the lane")
    column_start: Optional[int] = Field(default=None, description="1-based desktop column, primary lane only")
    row_start: Optional[int] = Field(default=None, description="1-based desktop row, primary lane only")
    compact_card: Optional[CompactCard] = Field(default=None, description="Card box, compact lane only")
    size_boosted: bool = Field(default=False, description="Derived size promoted by personalization")
