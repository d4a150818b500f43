from typing import Dict, List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from hydrodata.models.schemas import InterpolationMethod
from hydrodata.services.interpolation import interpolate

router = APIRouter(prefix="/api/interpolate", tags=["interpolate"])


class InterpolateRequest(BaseModel):
    x: List[float]
    y: List[float]
    target_x: List[float]
    method: InterpolationMethod = "pchip"


@router.post("")
def interpolate_samples(req: InterpolateRequest) -> Dict:
    """Interpolate sorted samples at the requested abscissas."""
    try:
        values = interpolate(req.method, req.x, req.y, req.target_x)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"method": req.method, "values": values}
