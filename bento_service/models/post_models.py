"""
Catalog-side data models.

This module contains the Pydantic models for posts as they come out of the
catalog, plus the enums shared by the ranking engine and the layout composer.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

PostId = Union[int, str]


class ContentType(str, Enum):
    """Kind of content a post carries."""
    ARTICLE = "article"
    VIDEO = "video"
    NEWS = "news"


class SizeClass(str, Enum):
    """Visual size of a bento cell, smallest to largest."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    BANNER = "banner"
    FEATURED = "featured"

    @classmethod
    def is_valid(cls, value) -> bool:
        """Check whether a raw value names a size class."""
        try:
            cls(value)
        except ValueError:
            return False
        return True


class Post(BaseModel):
    """A post as supplied by the catalog. Read-only for the engine."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: PostId = Field(description="Stable post identifier")
    published_at: Optional[datetime] = Field(
        default=None, alias="publishedAt", description="Publish time, absent for drafts"
    )
    view_count: int = Field(default=0, ge=0, alias="viewCount", description="Total views")
    content_type: ContentType = Field(
        default=ContentType.ARTICLE, alias="contentType", description="article, video or news"
    )
    is_featured: bool = Field(default=False, alias="isFeatured", description="Editorial featured flag")
    declared_size: Optional[SizeClass] = Field(
        default=None, alias="declaredSize", description="Editor-chosen size, overrides banding"
    )
    bento_order: Optional[int] = Field(
        default=None, ge=0, alias="bentoOrder", description="Explicit manual rank"
    )
    title: Optional[str] = Field(default=None, description="Display title, passed through untouched")

    @property
    def is_news(self) -> bool:
        return self.content_type == ContentType.NEWS


class WatchHistoryItem(BaseModel):
    """One engagement record from the watch-history provider."""
    post_id: PostId = Field(description="Post the viewer engaged with")
    engagement_seconds: float = Field(ge=0, description="Accumulated engagement time")
