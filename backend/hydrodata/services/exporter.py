"""Assemble validated uploads into the canonical region folder and archive."""
import csv
import io
import json
import logging
import re
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from hydrodata.models.schemas import ManifestEntry, UploadedFile, ValidationResult
from hydrodata.services.dates import normalize_date
from hydrodata.services.geometry import feature_list, property_text
from hydrodata.services.manifest import manifest_json, merge_manifest
from hydrodata.services.validator import validate_dataset


logger = logging.getLogger(__name__)

WELLS_HEADER = ["well_id", "lat", "long", "aquifer_id"]
WATER_LEVELS_HEADER = ["well_id", "date", "wte", "aquifer_id"]

REGION_FILE = "region.geojson"
AQUIFERS_FILE = "aquifers.geojson"
WELLS_FILE = "wells.csv"
WATER_LEVELS_FILE = "water_levels.csv"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# the canonical table reader splits on commas and newlines and has no quoting
_UNREADABLE_CHARS = (",", "\"", "\n", "\r")


class ExportBlocked(ValueError):
    def __init__(self, result: ValidationResult):
        super().__init__("; ".join(result.errors) or "Validation failed")
        self.result = result


def region_slug(name: str) -> str:
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def validate_region_name(name: str, existing_ids: Iterable[str]) -> Optional[str]:
    if not name or not name.strip():
        return "Region name is required"
    slug = region_slug(name)
    if not slug:
        return "Region name must contain letters or digits"
    if slug in set(existing_ids):
        return f'A region with folder name "{slug}" already exists'
    return None


def build_region_document(region: UploadedFile, region_name: str) -> Dict[str, Any]:
    slug = region_slug(region_name)
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"region_id": slug, "region_name": region_name},
                "geometry": feature.get("geometry"),
            }
            for feature in feature_list(region.data)
        ],
    }


def build_aquifer_document(aquifers: UploadedFile) -> Dict[str, Any]:
    id_prop = aquifers.mapping.get("aquifer_id", "")
    name_prop = aquifers.mapping.get("aquifer_name", "")
    features = []
    for feature in feature_list(aquifers.data):
        props = feature.get("properties") or {}
        features.append(
            {
                "type": "Feature",
                "properties": {
                    "aquifer_id": property_text(props.get(id_prop)),
                    "aquifer_name": property_text(props.get(name_prop)),
                },
                "geometry": feature.get("geometry"),
            }
        )
    return {"type": "FeatureCollection", "features": features}


def build_well_rows(wells: UploadedFile) -> List[Dict[str, str]]:
    id_col = wells.mapping.get("well_id", "")
    lat_col = wells.mapping.get("lat", "")
    long_col = wells.mapping.get("long", "")
    aquifer_col = wells.mapping.get("aquifer_id")

    rows = []
    for row in wells.data or []:
        out = {
            "well_id": row.get(id_col, ""),
            "lat": row.get(lat_col, ""),
            "long": row.get(long_col, ""),
            "aquifer_id": row.get(aquifer_col, "") if aquifer_col else "",
        }
        if out["well_id"] and out["lat"] and out["long"]:
            rows.append(out)
    return rows


def build_measurement_rows(
    measurements: UploadedFile, well_ids: Set[str], date_format: str
) -> List[Dict[str, str]]:
    well_col = measurements.mapping.get("well_id", "")
    date_col = measurements.mapping.get("date", "")
    wte_col = measurements.mapping.get("wte", "")
    aquifer_col = measurements.mapping.get("aquifer_id")

    rows = []
    for row in measurements.data or []:
        well_id = row.get(well_col, "")
        if well_id not in well_ids:
            continue
        rows.append(
            {
                "well_id": well_id,
                "date": normalize_date(row.get(date_col, ""), date_format),
                "wte": row.get(wte_col, ""),
                "aquifer_id": row.get(aquifer_col, "") if aquifer_col else "",
            }
        )
    return rows


def readable_rows(rows: List[Dict[str, str]]) -> Tuple[List[Dict[str, str]], int]:
    """Split off rows holding a value the canonical reader would mangle; returns (kept, skipped)."""
    kept = [row for row in rows if not any(ch in value for value in row.values() for ch in _UNREADABLE_CHARS)]
    return kept, len(rows) - len(kept)


def rows_to_csv(header: List[str], rows: List[Dict[str, str]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer, fieldnames=header, lineterminator="\n", extrasaction="ignore", quoting=csv.QUOTE_NONE
    )
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


@dataclass
class ExportBundle:
    slug: str
    region_name: str
    files: Dict[str, str]
    manifest: List[ManifestEntry]
    well_count: int = 0
    measurement_count: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def archive_name(self) -> str:
        return f"{self.slug}.zip"

    def to_zip(self) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for filename, content in self.files.items():
                archive.writestr(f"{self.slug}/{filename}", content)
            archive.writestr("regions.json", manifest_json(self.manifest))
        return buffer.getvalue()


def export_region(
    region: Optional[UploadedFile],
    aquifers: Optional[UploadedFile],
    wells: Optional[UploadedFile],
    measurements: Optional[UploadedFile],
    region_name: str,
    date_format: str = "iso",
    manifest: Optional[List[ManifestEntry]] = None,
    url_prefix: str = "/data",
    existing_ids: Iterable[str] = (),
) -> ExportBundle:
    """Validate, normalise and package one region.

    ``existing_ids`` are the region folders already installed; a clashing
    name is refused. Raises :class:`ExportBlocked` when validation reports
    fatal errors and ``ValueError`` for an unusable region name.
    """
    manifest = list(manifest or [])
    name_error = validate_region_name(region_name, existing_ids)
    if name_error:
        raise ValueError(name_error)

    result = validate_dataset(region, aquifers, wells, measurements)
    if not result.is_valid:
        raise ExportBlocked(result)

    slug = region_slug(region_name)
    warnings = list(result.warnings)
    well_rows, skipped_wells = readable_rows(build_well_rows(wells))
    well_ids = {row["well_id"] for row in well_rows}
    measurement_rows, skipped_levels = readable_rows(build_measurement_rows(measurements, well_ids, date_format))
    if skipped_wells:
        warnings.append(f"{skipped_wells} wells contain commas, quotes or line breaks and were skipped")
        logger.warning(warnings[-1])
    if skipped_levels:
        warnings.append(f"{skipped_levels} measurements contain commas, quotes or line breaks and were skipped")
        logger.warning(warnings[-1])

    files = {
        REGION_FILE: json.dumps(build_region_document(region, region_name), indent=2),
        AQUIFERS_FILE: json.dumps(build_aquifer_document(aquifers), indent=2),
        WELLS_FILE: rows_to_csv(WELLS_HEADER, well_rows),
        WATER_LEVELS_FILE: rows_to_csv(WATER_LEVELS_HEADER, measurement_rows),
    }
    entry = ManifestEntry(id=slug, path=f"{url_prefix.rstrip('/')}/{slug}", name=region_name)

    logger.info("Processed %d wells", len(well_rows))
    logger.info("Processed %d measurements", len(measurement_rows))
    logger.info("Export bundle ready: %s.zip", slug)

    return ExportBundle(
        slug=slug,
        region_name=region_name,
        files=files,
        manifest=merge_manifest(manifest, entry),
        well_count=len(well_rows),
        measurement_count=len(measurement_rows),
        warnings=warnings,
    )
