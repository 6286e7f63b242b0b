"""
scorer_client.py - HTTP client for the external recommendation scorer

The scorer turns a viewer's watch history plus the catalog into a sparse
``post_id -> score`` map. The request/response shapes are typed here; the
client never guesses at alternative field names.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import requests
from pydantic import BaseModel, Field, ValidationError

from .errors import ScorerUnavailableError
from .models import ContentType, Post, PostId, WatchHistoryItem

_LOG = logging.getLogger("bento_service.scorer_client")

COMPUTE_PATH = "/recommendations/compute"


class ScorePostSummary(BaseModel):
    """Catalog fields the scorer is allowed to see."""
    post_id: PostId
    published_at: Optional[datetime] = None
    view_count: int = 0
    content_type: ContentType = ContentType.ARTICLE

    @classmethod
    def from_post(cls, post: Post) -> "ScorePostSummary":
        return cls(
            post_id=post.id,
            published_at=post.published_at,
            view_count=post.view_count,
            content_type=post.content_type,
        )


class ScoreRequest(BaseModel):
    """Body sent to the scorer."""
    viewer_id: str = Field(description="Viewer the scores are computed for")
    watch_history: List[WatchHistoryItem] = Field(default_factory=list)
    posts: List[ScorePostSummary] = Field(default_factory=list)


class ScoredPost(BaseModel):
    post_id: PostId
    score: float = Field(ge=0)


class ScoreResponse(BaseModel):
    """Body returned by the scorer."""
    recommendations: List[ScoredPost] = Field(default_factory=list)

    def as_map(self) -> Dict[PostId, float]:
        return {row.post_id: row.score for row in self.recommendations}


def build_session(proxy_url: Optional[str] = None) -> requests.Session:
    """Build a requests session with optional proxy configuration."""
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json", "Cache-Control": "no-cache"})
    if proxy_url:
        _LOG.info("Using proxy for scorer: %s", proxy_url)
        session.proxies.update({"http": proxy_url, "https": proxy_url})
    return session


class RecommendationScorerClient:
    """Thin typed wrapper around the scorer's compute endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or build_session()

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def compute(self, request: ScoreRequest) -> ScoreResponse:
        """POST a score request.

        Raises:
            ScorerUnavailableError: on network errors, non-2xx replies or a
                response that does not match the contract
        """
        if not self.enabled:
            raise ScorerUnavailableError("scorer base_url is not configured")

        url = f"{self.base_url}{COMPUTE_PATH}"
        try:
            resp = self.session.post(url, json=request.model_dump(mode="json"), timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.exceptions.RequestException as e:
            raise ScorerUnavailableError(f"scorer request failed: {e}") from e
        except ValueError as e:
            raise ScorerUnavailableError(f"scorer returned non-JSON body: {e}") from e

        try:
            return ScoreResponse.model_validate(payload)
        except ValidationError as e:
            raise ScorerUnavailableError(f"scorer response does not match contract: {e}") from e

    def score(
        self,
        viewer_id: str,
        watch_history: Iterable[WatchHistoryItem],
        posts: Iterable[Post],
    ) -> Dict[PostId, float]:
        """Return the sparse score map for a viewer."""
        request = ScoreRequest(
            viewer_id=viewer_id,
            watch_history=list(watch_history),
            posts=[ScorePostSummary.from_post(post) for post in posts],
        )
        response = self.compute(request)
        _LOG.debug("Scorer returned %d scores for %s", len(response.recommendations), viewer_id)
        return response.as_map()
