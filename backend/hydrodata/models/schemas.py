from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional, Tuple


DatasetKind = Literal["region", "aquifer", "wells", "measurements"]
DateFormat = Literal["iso", "us", "us-short", "eu", "eu-short"]
InterpolationMethod = Literal["pchip", "natural"]

# [minLat, minLng, maxLat, maxLng]; None when the geometry had no coordinates
Bounds = Optional[Tuple[float, float, float, float]]


class Region(BaseModel):
    id: str
    name: str
    geojson: Dict[str, Any]
    bounds: Bounds = None


class Aquifer(BaseModel):
    id: str
    name: str
    region_id: str
    geojson: Dict[str, Any]
    bounds: Bounds = None


class Well(BaseModel):
    id: str
    name: str
    lat: float
    lng: float
    gse: float = 0.0
    aquifer_id: str = ""
    aquifer_name: str = ""
    region_id: str


class Measurement(BaseModel):
    well_id: str
    well_name: str = ""
    date: str
    wte: float
    aquifer_id: str = ""


class ChartPoint(BaseModel):
    date: float  # epoch milliseconds
    wte: float
    is_interpolated: bool


class FieldSpec(BaseModel):
    key: str
    label: str
    required: bool


class ManifestEntry(BaseModel):
    id: str
    path: str
    name: str


class UploadedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: DatasetKind
    type: Literal["geojson", "csv"]
    data: Any  # feature collection / feature, or list of row dicts
    columns: List[str] = Field(default_factory=list)
    mapping: Dict[str, str] = Field(default_factory=dict)
    mapping_state: Literal["proposed", "accepted"] = "proposed"


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    dropped_measurements: int = 0
