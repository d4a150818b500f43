import json
import logging
from pathlib import Path
from typing import Any, List, Union

import requests
from pydantic import ValidationError

from hydrodata.models.schemas import ManifestEntry


logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "regions.json"


def parse_manifest(raw: Any) -> List[ManifestEntry]:
    if not isinstance(raw, list):
        raise ValueError("Manifest must be a JSON list")
    entries: List[ManifestEntry] = []
    for position, item in enumerate(raw):
        try:
            entries.append(ManifestEntry.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed manifest entry %d: %s", position, exc)
    return entries


def load_manifest(source: Union[str, Path, None], timeout: float = 10.0) -> List[ManifestEntry]:
    """Read ``regions.json`` from a path or URL; any failure yields ``[]``."""
    if not source:
        return []
    try:
        text = str(source)
        if text.startswith(("http://", "https://")):
            response = requests.get(text, timeout=timeout)
            response.raise_for_status()
            raw = response.json()
        else:
            path = Path(source)
            if not path.exists():
                logger.info("No manifest at %s, starting empty", path)
                return []
            raw = json.loads(path.read_text(encoding="utf-8"))
        return parse_manifest(raw)
    except Exception as exc:  # noqa
        logger.warning("Could not load %s (%s); starting from an empty manifest", source, exc)
        return []


def merge_manifest(manifest: List[ManifestEntry], entry: ManifestEntry) -> List[ManifestEntry]:
    """Append ``entry`` unless its id is already listed. Never replaces existing entries."""
    merged = list(manifest)
    if not any(item.id == entry.id for item in merged):
        merged.append(entry)
    return merged


def manifest_json(manifest: List[ManifestEntry]) -> str:
    return json.dumps([item.model_dump() for item in manifest], indent=2)
