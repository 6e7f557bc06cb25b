"""
Geographic boundary loading for the choropleth map.

Fetches a GeoJSON FeatureCollection once, either from a local file or over
HTTP with httpx, and returns its feature list. Each feature is expected to
carry an ISO3 identifier (the feature ``id`` in the default world collection).
"""

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from src.exceptions import BoundaryLoadError

logger = logging.getLogger(__name__)

DEFAULT_BOUNDARY_URL = (
    "https://raw.githubusercontent.com/holtzy/D3-graph-gallery/master/DATA/world.geojson"
)
DEFAULT_TIMEOUT = 30.0


def is_url(source: str | Path) -> bool:
    return str(source).startswith(("http://", "https://"))


def load_boundaries(
    source: str | Path = DEFAULT_BOUNDARY_URL,
    *,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[dict[str, Any]]:
    """Load boundary features from a URL or a local GeoJSON file.

    Args:
        source: http(s) URL or filesystem path
        client: Optional httpx client (used for URL sources)
        timeout: Request timeout in seconds when no client is given

    Returns:
        List of GeoJSON feature dicts

    Raises:
        BoundaryLoadError: If the source cannot be read or is not a FeatureCollection
    """
    if is_url(source):
        payload = _fetch(str(source), client=client, timeout=timeout)
    else:
        payload = _read_file(Path(source))

    features = extract_features(payload, source=str(source))
    logger.info(f"Loaded {len(features)} boundary features from {source}")
    return features


def load_boundaries_safe(
    source: str | Path | None,
    *,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[dict[str, Any]]:
    """Load boundaries, returning an empty list on any load error.

    Args:
        source: URL or path, or None to skip loading

    Returns:
        Feature list, or [] if source is None or loading failed
    """
    if source is None:
        return []

    try:
        return load_boundaries(source, client=client, timeout=timeout)
    except BoundaryLoadError as e:
        logger.warning(f"Map will render without boundaries: {e.message}")
        return []


def extract_features(payload: Any, *, source: str = "<memory>") -> list[dict[str, Any]]:
    """Return the feature list of a FeatureCollection payload."""
    if not isinstance(payload, dict) or payload.get("type") != "FeatureCollection":
        raise BoundaryLoadError(
            "Boundary source is not a GeoJSON FeatureCollection",
            source=source,
        )

    features = payload.get("features")
    if not isinstance(features, list):
        raise BoundaryLoadError("FeatureCollection has no feature list", source=source)

    return [f for f in features if isinstance(f, dict)]


def _fetch(url: str, *, client: httpx.Client | None, timeout: float) -> Any:
    try:
        if client is not None:
            response = client.get(url)
        else:
            with httpx.Client(timeout=timeout, follow_redirects=True) as owned:
                response = owned.get(url)
    except httpx.RequestError as exc:
        raise BoundaryLoadError(f"Boundary request failed: {exc}", source=url) from exc

    if response.status_code >= 400:
        raise BoundaryLoadError(
            f"Boundary request failed ({response.status_code})",
            source=url,
            status_code=response.status_code,
        )

    try:
        return response.json()
    except ValueError as exc:
        raise BoundaryLoadError(f"Boundary response is not JSON: {exc}", source=url) from exc


def _read_file(path: Path) -> Any:
    if not path.exists():
        raise BoundaryLoadError(f"Boundary file not found: {path}", source=str(path))

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise BoundaryLoadError(f"Invalid GeoJSON in {path}: {exc}", source=str(path)) from exc
