"""Boundary dataset loading."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import requests

from travellog.domain.attribution import BoundaryIndex

logger = logging.getLogger(__name__)

DEFAULT_BOUNDARIES_URL = (
    "https://raw.githubusercontent.com/datasets/geo-countries/master/data/countries.geojson"
)


def load_boundary_document(source: Optional[str] = None, timeout: float = 30) -> Optional[dict[str, Any]]:
    """Load a GeoJSON boundary document from a file path or URL.

    Failures are logged and yield None; callers degrade to name based
    attribution.

    Args:
        source: File path or http(s) URL. Defaults to the public geo-countries dataset.
        timeout: HTTP timeout in seconds
    """
    source = source or DEFAULT_BOUNDARIES_URL
    try:
        if source.startswith(("http://", "https://")):
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
            document = response.json()
        else:
            with Path(source).open("r", encoding="utf-8") as f:
                document = json.load(f)
    except (requests.RequestException, OSError, ValueError) as e:
        logger.warning("Could not load boundary dataset from %s: %s", source, e)
        return None

    if not isinstance(document, dict):
        logger.warning("Boundary dataset from %s is not a GeoJSON object", source)
        return None
    return document


def load_boundary_index(source: Optional[str] = None) -> BoundaryIndex:
    """Build the Boundary Index from a dataset; empty when loading fails."""
    return BoundaryIndex.from_geojson(load_boundary_document(source))
