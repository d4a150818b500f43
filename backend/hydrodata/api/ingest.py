import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from hydrodata import config
from hydrodata.api.uploads import get_upload_store, load_snapshot
from hydrodata.models.schemas import DatasetKind, DateFormat, FieldSpec, UploadedFile, ValidationResult
from hydrodata.services.cache import UploadStore
from hydrodata.services.column_mapping import field_specs
from hydrodata.services.dates import DATE_FORMATS
from hydrodata.services.exporter import ExportBlocked, export_region
from hydrodata.services.manifest import load_manifest
from hydrodata.services.validator import validate_dataset

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ingest", tags=["ingest"])


class UploadTokens(BaseModel):
    region: Optional[str] = None
    aquifer: Optional[str] = None
    wells: Optional[str] = None
    measurements: Optional[str] = None


class ExportRequest(UploadTokens):
    region_name: str
    date_format: DateFormat = "iso"
    existing_regions: List[str] = []


def _snapshots(tokens: UploadTokens, store: UploadStore) -> Dict[str, Optional[UploadedFile]]:
    out: Dict[str, Optional[UploadedFile]] = {}
    for kind in ("region", "aquifer", "wells", "measurements"):
        token = getattr(tokens, kind)
        if not token:
            out[kind] = None
            continue
        upload = load_snapshot(store, token)
        if upload.kind != kind:
            raise HTTPException(status_code=400, detail=f"Upload {token} holds {upload.kind} data, not {kind}")
        out[kind] = upload
    return out


@router.get("/fields/{kind}")
def get_fields(kind: DatasetKind) -> List[FieldSpec]:
    return field_specs(kind)


@router.get("/date-formats")
def get_date_formats() -> List[Dict[str, str]]:
    return DATE_FORMATS


@router.post("/validate")
def validate(tokens: UploadTokens, store: UploadStore = Depends(get_upload_store)) -> ValidationResult:
    s = _snapshots(tokens, store)
    return validate_dataset(s["region"], s["aquifer"], s["wells"], s["measurements"])


@router.post("/export")
def export(req: ExportRequest, store: UploadStore = Depends(get_upload_store)):
    """Validate the four uploads and return the region bundle as a zip archive."""
    s = _snapshots(req, store)
    manifest = load_manifest(config.MANIFEST_SOURCE)
    try:
        bundle = export_region(
            s["region"],
            s["aquifer"],
            s["wells"],
            s["measurements"],
            region_name=req.region_name,
            date_format=req.date_format,
            manifest=manifest,
            url_prefix=config.DATA_URL_PREFIX,
            existing_ids=[entry.id for entry in manifest] + req.existing_regions,
        )
    except ExportBlocked as exc:
        logger.warning("Export of %s blocked with %d errors", req.region_name, len(exc.result.errors))
        return JSONResponse(status_code=422, content=exc.result.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return Response(
        content=bundle.to_zip(),
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="{bundle.archive_name}"',
            "X-Wells-Exported": str(bundle.well_count),
            "X-Measurements-Exported": str(bundle.measurement_count),
        },
    )
