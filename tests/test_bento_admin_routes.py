"""
Tests for the bento admin module (layout editor endpoints).
"""
import json
import shutil
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

from flask import Flask

from app.bento_admin.factory import create_bento_admin_module
from bento_service.catalog import CatalogProvider
from bento_service.overrides import OverrideStore


class TestBentoAdminRoutes:
    """Reorder, resize, move and reset through HTTP."""

    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        catalog_file = self.temp_dir / "catalog.json"
        catalog_file.write_text(json.dumps([
            {"id": 1, "publishedAt": "2024-05-30T00:00:00Z", "viewCount": 100},
            {"id": 2, "publishedAt": "2024-05-20T00:00:00Z", "viewCount": 10},
            {"id": 3, "publishedAt": "2024-05-01T00:00:00Z", "viewCount": 1, "isFeatured": True},
            {"id": "n1", "contentType": "news", "publishedAt": "2024-05-31T00:00:00Z"},
        ]), encoding="utf-8")

        self.store = OverrideStore(self.temp_dir / "overrides.json")
        self.on_change = MagicMock()
        self.module = create_bento_admin_module(
            catalog=CatalogProvider(catalog_file),
            override_store=self.store,
            on_change=self.on_change,
        )
        self.service = self.module["service"]

        app = Flask(__name__)
        app.register_blueprint(self.module["blueprint"])
        self.client = app.test_client()

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def layout_ids(self):
        data = self.client.get("/api/admin/bento/").get_json()
        return [row["post_id"] for row in data["posts"]]

    def test_get_layout(self):
        response = self.client.get("/api/admin/bento/")
        assert response.status_code == 200

        data = response.get_json()
        assert data["version"] == 0
        assert data["has_manual_order"] is False
        assert data["posts"][0]["post_id"] == 3
        assert data["posts"][0]["position"] == 0

    def test_reorder(self):
        response = self.client.post("/api/admin/bento/reorder", json={"order": [2, 1, 3, "n1"]})

        assert response.status_code == 200
        assert response.get_json()["version"] == 1
        assert self.layout_ids() == [2, 1, 3, "n1"]
        self.on_change.assert_called_once()

    def test_reorder_accepts_stringified_ids(self):
        response = self.client.post("/api/admin/bento/reorder", json={"order": ["2", "1"]})

        assert response.status_code == 200
        assert self.store.snapshot().order == [2, 1]

    def test_reorder_unknown_id(self):
        response = self.client.post("/api/admin/bento/reorder", json={"order": [1, 42]})

        assert response.status_code == 400
        assert "42" in response.get_json()["details"][0]
        self.on_change.assert_not_called()

    def test_reorder_duplicate_ids(self):
        response = self.client.post("/api/admin/bento/reorder", json={"order": [1, 1]})
        assert response.status_code == 400

    def test_reorder_requires_order(self):
        assert self.client.post("/api/admin/bento/reorder", json={}).status_code == 400
        assert self.client.post("/api/admin/bento/reorder", data="nope").status_code == 400

    def test_set_size(self):
        response = self.client.post("/api/admin/bento/size", json={"post_id": 2, "size": "banner"})
        assert response.status_code == 200

        rows = {row["post_id"]: row for row in self.client.get("/api/admin/bento/").get_json()["posts"]}
        assert rows[2]["declared_size"] == "banner"

    def test_set_invalid_size(self):
        response = self.client.post("/api/admin/bento/size", json={"post_id": 2, "size": "huge"})
        assert response.status_code == 400

    def test_move(self):
        before = self.layout_ids()
        response = self.client.post("/api/admin/bento/move", json={"post_id": before[-1], "index": 0})

        assert response.status_code == 200
        after = self.layout_ids()
        assert after == [before[-1]] + before[:-1]
        assert self.store.snapshot().order == after

    def test_move_out_of_range(self):
        response = self.client.post("/api/admin/bento/move", json={"post_id": 1, "index": 10})
        assert response.status_code == 400

        response = self.client.post("/api/admin/bento/move", json={"post_id": 1, "index": True})
        assert response.status_code == 400

    def test_move_requires_fields(self):
        response = self.client.post("/api/admin/bento/move", json={"post_id": 1})
        assert response.status_code == 400

    def test_batch_layout(self):
        response = self.client.post("/api/admin/bento/layout", json={"updates": [
            {"post_id": "n1", "order": 0, "size": "small"},
            {"post_id": 1, "order": 1, "size": "large"},
        ]})

        assert response.status_code == 200
        snapshot = self.store.snapshot()
        assert snapshot.order == ["n1", 1]
        assert snapshot.sizes[1] == "large"

    def test_batch_layout_requires_list(self):
        response = self.client.post("/api/admin/bento/layout", json={"updates": "all"})
        assert response.status_code == 400

    def test_reset(self):
        self.client.post("/api/admin/bento/reorder", json={"order": [2, 1]})
        response = self.client.post("/api/admin/bento/reset")

        assert response.status_code == 200
        assert self.store.snapshot().order is None
        assert self.layout_ids()[0] == 3

    def test_store_failure_is_server_error(self):
        self.store.overrides_file.write_text("{broken", encoding="utf-8")

        response = self.client.post("/api/admin/bento/reorder", json={"order": [1]})
        assert response.status_code == 500
        assert response.get_json()["error"] == "override store unavailable"

    def test_reset_recovers_corrupt_store(self):
        self.store.overrides_file.write_text("{broken", encoding="utf-8")

        response = self.client.post("/api/admin/bento/reset")
        assert response.status_code == 200

        response = self.client.post("/api/admin/bento/reorder", json={"order": [1]})
        assert response.status_code == 200
        assert self.store.snapshot().order == [1]
