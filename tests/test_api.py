# -*- coding: utf-8 -*-
"""Tests for the HTTP endpoints."""

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from main import app


@pytest.fixture
def client(fresh_service):
    return TestClient(app)


def _upload(name, content):
    return (name, content, "image/png")


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "1.0.0"}


class TestCompareEndpoint:
    def test_self_comparison(self, client, pattern_png, pattern_feature_count):
        response = client.post(
            "/api/compare",
            files={"image1": _upload("a.png", pattern_png), "image2": _upload("b.png", pattern_png)},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["error"] is None
        assert body["score"] >= 90.0
        assert body["match_count"] >= 0.8 * pattern_feature_count
        assert body["is_render1"] is True

    def test_garbage_is_degraded_not_rejected(self, client, pattern_png):
        response = client.post(
            "/api/compare",
            files={"image1": _upload("a.png", b"garbage"), "image2": _upload("b.png", pattern_png)},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["score"] == 0.0
        assert body["error"]

    def test_missing_file(self, client, pattern_png):
        response = client.post("/api/compare", files={"image1": _upload("a.png", pattern_png)})
        assert response.status_code == 422


class TestClassifyEndpoint:
    def test_pattern(self, client, pattern_png):
        response = client.post("/api/classify", files={"image": _upload("p.png", pattern_png)})
        assert response.status_code == 200
        body = response.json()
        assert body["is_render"] is True
        assert body["verdict"] == "rendered"
        assert body["edge_sharpness"] > 0.10

    def test_garbage(self, client):
        response = client.post("/api/classify", files={"image": _upload("x.png", b"garbage")})
        assert response.status_code == 400


class TestInspectionEndpoints:
    @pytest.mark.parametrize("path", ["/api/preprocess", "/api/segments"])
    def test_returns_png(self, client, pattern_png, path):
        response = client.post(
            path,
            files={"image": _upload("p.png", pattern_png)},
            data={"is_render": "true"},
        )
        assert response.status_code == 200
        assert response.headers["content-type"] == "image/png"
        decoded = cv2.imdecode(np.frombuffer(response.content, np.uint8), cv2.IMREAD_GRAYSCALE)
        assert decoded.shape == (238, 322)

    def test_segments_are_binary(self, client, pattern_png):
        response = client.post("/api/segments", files={"image": _upload("p.png", pattern_png)})
        decoded = cv2.imdecode(np.frombuffer(response.content, np.uint8), cv2.IMREAD_GRAYSCALE)
        assert set(np.unique(decoded)).issubset({0, 255})
