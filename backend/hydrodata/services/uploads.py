import json
import logging
from typing import Any, Dict, List

from hydrodata.models.schemas import UploadedFile
from hydrodata.services.column_mapping import field_specs, infer_mapping
from hydrodata.services.geometry import feature_list, reproject_to_wgs84
from hydrodata.services.shapefile import shapefile_zip_to_geojson
from hydrodata.services.tabular import parse_table


logger = logging.getLogger(__name__)

GEOJSON_SUFFIXES = (".geojson", ".json")
TABLE_SUFFIXES = (".csv", ".txt")
SHAPEFILE_SUFFIXES = (".zip",)

# region and aquifer uploads carry boundaries, the other kinds are tables
EXPECTED_TYPE = {"region": "geojson", "aquifer": "geojson", "wells": "csv", "measurements": "csv"}


class UploadError(ValueError):
    pass


def _decode(payload: bytes, filename: str) -> str:
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise UploadError(f"{filename} is not UTF-8 text") from exc


def _property_columns(geojson: Dict[str, Any]) -> List[str]:
    features = feature_list(geojson)
    if not features:
        return []
    return list((features[0].get("properties") or {}).keys())


def _check_geojson(geojson: Any, filename: str) -> Dict[str, Any]:
    if not isinstance(geojson, dict) or geojson.get("type") not in ("FeatureCollection", "Feature"):
        raise UploadError(f"{filename} is not a GeoJSON Feature or FeatureCollection")
    return geojson


def parse_upload(filename: str, payload: bytes, kind: str) -> UploadedFile:
    """Parse one uploaded file into a proposed snapshot with an inferred mapping."""
    field_specs(kind)
    lowered = filename.lower()

    if lowered.endswith(SHAPEFILE_SUFFIXES):
        try:
            geojson = shapefile_zip_to_geojson(payload)
        except Exception as exc:  # noqa
            raise UploadError(f"Failed to read shapefile bundle {filename}: {exc}") from exc
        columns = _property_columns(geojson)
        upload = UploadedFile(name=filename, kind=kind, type="geojson", data=geojson, columns=columns)
        logger.info("Converted shapefile to GeoJSON with %d features", len(feature_list(geojson)))
    elif lowered.endswith(GEOJSON_SUFFIXES):
        try:
            geojson = json.loads(_decode(payload, filename))
        except json.JSONDecodeError as exc:
            raise UploadError(f"{filename} is not valid JSON: {exc}") from exc
        geojson = reproject_to_wgs84(_check_geojson(geojson, filename))
        columns = _property_columns(geojson)
        upload = UploadedFile(name=filename, kind=kind, type="geojson", data=geojson, columns=columns)
        logger.info("Loaded GeoJSON with %d features", len(feature_list(geojson)))
    elif lowered.endswith(TABLE_SUFFIXES):
        headers, rows = parse_table(_decode(payload, filename))
        upload = UploadedFile(name=filename, kind=kind, type="csv", data=rows, columns=headers)
        logger.info("Loaded CSV with %d rows and %d columns", len(rows), len(headers))
    else:
        raise UploadError(f"Unsupported file type: {filename}")

    if upload.type != EXPECTED_TYPE[kind]:
        raise UploadError(f"{filename}: {kind} data must be a {EXPECTED_TYPE[kind]} file, got {upload.type}")

    if kind == "region":
        return upload
    return upload.model_copy(update={"mapping": infer_mapping(upload.columns, kind)})
