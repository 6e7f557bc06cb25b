"""
Tests for geographic boundary loading.

HTTP sources are exercised with httpx.MockTransport; nothing touches the network.
"""

import json
from pathlib import Path

import httpx
import pytest

from src.data.boundaries import (
    extract_features,
    is_url,
    load_boundaries,
    load_boundaries_safe,
)
from src.exceptions import BoundaryLoadError

URL = "https://example.org/world.geojson"


@pytest.fixture
def collection() -> dict:
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "id": "KEN", "properties": {"name": "Kenya"}, "geometry": None},
            {"type": "Feature", "id": "PER", "properties": {"name": "Peru"}, "geometry": None},
        ],
    }


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


# =============================================================================
# PAYLOAD TESTS
# =============================================================================


class TestExtractFeatures:
    """Tests for FeatureCollection validation."""

    def test_returns_features(self, collection):
        features = extract_features(collection)
        assert [f["id"] for f in features] == ["KEN", "PER"]

    def test_skips_non_dict_features(self, collection):
        collection["features"].append("junk")
        assert len(extract_features(collection)) == 2

    @pytest.mark.parametrize("payload", [
        [],
        {"type": "Feature"},
        {"features": []},
    ])
    def test_rejects_non_collections(self, payload):
        with pytest.raises(BoundaryLoadError):
            extract_features(payload)

    def test_rejects_missing_feature_list(self):
        with pytest.raises(BoundaryLoadError, match="no feature list"):
            extract_features({"type": "FeatureCollection"})


class TestIsUrl:
    """Tests for source detection."""

    def test_http_sources(self):
        assert is_url("https://example.org/a.json")
        assert is_url("http://example.org/a.json")

    def test_paths(self):
        assert not is_url("data/world.geojson")
        assert not is_url(Path("/tmp/world.geojson"))


# =============================================================================
# FILE SOURCE TESTS
# =============================================================================


class TestFileSource:
    """Tests for loading boundaries from disk."""

    def test_loads_local_file(self, tmp_path, collection):
        path = tmp_path / "world.geojson"
        path.write_text(json.dumps(collection), encoding="utf-8")

        assert len(load_boundaries(path)) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(BoundaryLoadError, match="not found"):
            load_boundaries(tmp_path / "missing.geojson")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.geojson"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(BoundaryLoadError) as exc_info:
            load_boundaries(path)
        assert exc_info.value.source == str(path)


# =============================================================================
# HTTP SOURCE TESTS
# =============================================================================


class TestHttpSource:
    """Tests for fetching boundaries over HTTP."""

    def test_fetches_with_client(self, collection):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, json=collection)

        with mock_client(handler) as client:
            features = load_boundaries(URL, client=client)

        assert requested == [URL]
        assert len(features) == 2

    def test_http_error_status(self):
        with mock_client(lambda request: httpx.Response(404)) as client:
            with pytest.raises(BoundaryLoadError) as exc_info:
                load_boundaries(URL, client=client)

        assert exc_info.value.status_code == 404
        assert exc_info.value.context["source"] == URL

    def test_request_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with mock_client(handler) as client:
            with pytest.raises(BoundaryLoadError, match="request failed"):
                load_boundaries(URL, client=client)

    def test_non_json_body(self):
        with mock_client(lambda request: httpx.Response(200, text="<html>")) as client:
            with pytest.raises(BoundaryLoadError, match="not JSON"):
                load_boundaries(URL, client=client)


# =============================================================================
# SAFE LOADER TESTS
# =============================================================================


class TestLoadBoundariesSafe:
    """Tests for the non-raising loader."""

    def test_none_source(self):
        assert load_boundaries_safe(None) == []

    def test_failure_returns_empty_list(self):
        with mock_client(lambda request: httpx.Response(500)) as client:
            assert load_boundaries_safe(URL, client=client) == []

    def test_success_passes_through(self, collection):
        with mock_client(lambda request: httpx.Response(200, json=collection)) as client:
            assert len(load_boundaries_safe(URL, client=client)) == 2
