import base64
import binascii
from typing import Dict, List, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from hydrodata.models.schemas import DatasetKind, FieldSpec, UploadedFile
from hydrodata.services.cache import UploadStore
from hydrodata.services.column_mapping import accept_mapping, field_specs, override_mapping
from hydrodata.services.uploads import parse_upload

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


class UploadRequest(BaseModel):
    filename: str
    content: str
    encoding: Literal["text", "base64"] = "text"


class MappingUpdate(BaseModel):
    # target field -> source column; "" clears the field
    mapping: Dict[str, str]


class UploadResponse(BaseModel):
    token: str
    upload: UploadedFile
    fields: List[FieldSpec]


def get_upload_store() -> UploadStore:
    return UploadStore()


def load_snapshot(store: UploadStore, token: str) -> UploadedFile:
    upload = store.load(token)
    if upload is None:
        raise HTTPException(status_code=404, detail=f"Unknown or expired upload: {token}")
    return upload


def _payload(req: UploadRequest) -> bytes:
    if req.encoding == "base64":
        try:
            return base64.b64decode(req.content, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="content is not valid base64")
    return req.content.encode("utf-8")


@router.post("/{kind}")
def create_upload(kind: DatasetKind, req: UploadRequest, store: UploadStore = Depends(get_upload_store)) -> UploadResponse:
    """Parse an uploaded file and store it with a proposed column mapping."""
    try:
        upload = parse_upload(req.filename, _payload(req), kind)
    except HTTPException:
        raise
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    token = store.save(upload)
    return UploadResponse(token=token, upload=upload, fields=field_specs(kind))


@router.get("/{token}")
def get_upload(token: str, store: UploadStore = Depends(get_upload_store)) -> UploadResponse:
    upload = load_snapshot(store, token)
    return UploadResponse(token=token, upload=upload, fields=field_specs(upload.kind))


@router.patch("/{token}/mapping")
def update_mapping(token: str, req: MappingUpdate, store: UploadStore = Depends(get_upload_store)) -> UploadResponse:
    upload = load_snapshot(store, token)
    try:
        updated = override_mapping(upload, req.mapping)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    store.save(updated, token)
    return UploadResponse(token=token, upload=updated, fields=field_specs(updated.kind))


@router.post("/{token}/accept")
def accept_upload(token: str, store: UploadStore = Depends(get_upload_store)) -> UploadResponse:
    upload = load_snapshot(store, token)
    accepted = accept_mapping(upload)
    store.save(accepted, token)
    return UploadResponse(token=token, upload=accepted, fields=field_specs(accepted.kind))
