"""
Tests for the recommendation scorer HTTP client.
"""
import logging
from unittest.mock import MagicMock

import pytest
import requests

from bento_service.errors import ScorerUnavailableError
from bento_service.models import Post, WatchHistoryItem
from bento_service.scorer_client import (
    COMPUTE_PATH,
    RecommendationScorerClient,
    ScoreRequest,
    build_session,
)


def make_client(payload=None, exc=None, status_error=None):
    session = MagicMock()
    if exc is not None:
        session.post.side_effect = exc
    else:
        response = MagicMock()
        response.json.return_value = payload
        if status_error is not None:
            response.raise_for_status.side_effect = status_error
        session.post.return_value = response
    return RecommendationScorerClient("http://scorer.local/", timeout=2.0, session=session), session


class TestRecommendationScorerClient:

    def test_score_returns_sparse_map(self):
        client, session = make_client({"recommendations": [{"post_id": 1, "score": 0.9}, {"post_id": "b", "score": 0.1}]})
        history = [WatchHistoryItem(post_id=3, engagement_seconds=40)]
        posts = [Post(id=1, view_count=3), Post(id="b")]

        scores = client.score("viewer1", history, posts)

        assert scores == {1: 0.9, "b": 0.1}
        url = session.post.call_args.args[0]
        assert url == "http://scorer.local" + COMPUTE_PATH
        body = session.post.call_args.kwargs["json"]
        assert body["viewer_id"] == "viewer1"
        assert body["watch_history"][0]["post_id"] == 3
        assert [p["post_id"] for p in body["posts"]] == [1, "b"]
        assert session.post.call_args.kwargs["timeout"] == 2.0

    def test_network_error(self):
        client, _ = make_client(exc=requests.exceptions.ConnectionError("refused"))
        with pytest.raises(ScorerUnavailableError):
            client.compute(ScoreRequest(viewer_id="v"))

    def test_http_error(self):
        client, _ = make_client(payload={}, status_error=requests.exceptions.HTTPError("503"))
        with pytest.raises(ScorerUnavailableError):
            client.compute(ScoreRequest(viewer_id="v"))

    def test_non_json_body(self):
        client, session = make_client()
        session.post.return_value.json.side_effect = ValueError("no json")
        with pytest.raises(ScorerUnavailableError):
            client.compute(ScoreRequest(viewer_id="v"))

    def test_contract_violation(self):
        client, _ = make_client({"recommendations": [{"id": 1, "value": 3}]})
        with pytest.raises(ScorerUnavailableError):
            client.compute(ScoreRequest(viewer_id="v"))

    def test_disabled_without_base_url(self):
        client = RecommendationScorerClient("", session=MagicMock())
        assert client.enabled is False
        with pytest.raises(ScorerUnavailableError):
            client.compute(ScoreRequest(viewer_id="v"))


def test_build_session_with_proxy():
    session = build_session("http://proxy:8080")
    assert session.proxies["https"] == "http://proxy:8080"
    assert session.headers["Content-Type"] == "application/json"


def test_proxy_notice_logs_under_package_namespace(caplog):
    with caplog.at_level(logging.INFO, logger="bento_service"):
        build_session("http://proxy:8080")

    assert [r.name for r in caplog.records] == ["bento_service.scorer_client"]
