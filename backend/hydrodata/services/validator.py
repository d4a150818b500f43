"""Cross-file referential checks run before an import can be exported.

Fatal problems are collected exhaustively into ``errors``; each stage
short-circuits only the later stages whose inputs it found missing.
"""
import logging
from typing import List, Optional, Set

from hydrodata.models.schemas import UploadedFile, ValidationResult
from hydrodata.services.column_mapping import missing_required
from hydrodata.services.geometry import feature_list, property_text


logger = logging.getLogger(__name__)

_REQUIRED_FILES = (
    ("region", "Region file is required"),
    ("aquifer", "Aquifer file is required"),
    ("wells", "Wells file is required"),
    ("measurements", "Water levels file is required"),
)


def known_aquifer_ids(aquifers: UploadedFile) -> Set[str]:
    id_prop = aquifers.mapping.get("aquifer_id", "")
    ids: Set[str] = set()
    for feature in feature_list(aquifers.data):
        value = property_text((feature.get("properties") or {}).get(id_prop))
        if value:
            ids.add(value)
    return ids


def accepted_well_ids(wells: UploadedFile) -> Set[str]:
    """Ids of well rows that survive export: id, lat and long all present."""
    id_col = wells.mapping.get("well_id", "")
    lat_col = wells.mapping.get("lat", "")
    long_col = wells.mapping.get("long", "")
    accepted: Set[str] = set()
    for row in wells.data or []:
        well_id = row.get(id_col, "")
        if well_id and row.get(lat_col, "") and row.get(long_col, ""):
            accepted.add(well_id)
    return accepted


def validate_dataset(
    region: Optional[UploadedFile],
    aquifers: Optional[UploadedFile],
    wells: Optional[UploadedFile],
    measurements: Optional[UploadedFile],
) -> ValidationResult:
    errors: List[str] = []
    warnings: List[str] = []
    dropped = 0

    uploads = {"region": region, "aquifer": aquifers, "wells": wells, "measurements": measurements}
    for kind, message in _REQUIRED_FILES:
        if uploads[kind] is None:
            errors.append(message)
    if errors:
        return ValidationResult(is_valid=False, errors=errors)

    for upload in (aquifers, wells, measurements):
        if upload.mapping_state != "accepted":
            errors.append(f"{upload.kind}: column mapping has not been accepted")
        for spec in missing_required(upload):
            errors.append(f"{upload.kind}: Missing mapping for {spec.label}")
    if errors:
        return ValidationResult(is_valid=False, errors=errors)

    aquifer_ids = known_aquifer_ids(aquifers)

    well_id_col = wells.mapping["well_id"]
    well_aquifer_col = wells.mapping.get("aquifer_id")
    for row in wells.data or []:
        aquifer_ref = row.get(well_aquifer_col, "") if well_aquifer_col else ""
        if aquifer_ref and aquifer_ref not in aquifer_ids:
            errors.append(f"Well {row.get(well_id_col, '')} references non-existent aquifer {aquifer_ref}")
    well_ids = accepted_well_ids(wells)

    if not well_aquifer_col:
        warnings.append(
            "Wells file has no aquifer_id column. Point-in-polygon assignment will be attempted."
        )

    measurement_well_col = measurements.mapping["well_id"]
    for row in measurements.data or []:
        if row.get(measurement_well_col, "") not in well_ids:
            dropped += 1
    if dropped > 0:
        warnings.append(f"{dropped} measurements reference non-existent wells and will be dropped")

    for message in errors:
        logger.warning("Validation error: %s", message)
    for message in warnings:
        logger.info("Validation warning: %s", message)

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        dropped_measurements=dropped,
    )
