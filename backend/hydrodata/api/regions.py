from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from hydrodata import config
from hydrodata.models.schemas import Aquifer, ChartPoint, InterpolationMethod, Measurement, Region, Well
from hydrodata.services.dataset import RegionData, load_all_data
from hydrodata.services.timeseries import build_chart_series

router = APIRouter(prefix="/api/regions", tags=["regions"])


def get_dataset() -> Dict[str, RegionData]:
    return load_all_data(config.DATA_ROOT, config.MANIFEST_SOURCE)


def _region_data(dataset: Dict[str, RegionData], region_id: str) -> RegionData:
    data = dataset.get(region_id)
    if data is None:
        raise HTTPException(status_code=404, detail=f"Unknown region: {region_id}")
    return data


@router.get("")
def list_regions(dataset: Dict[str, RegionData] = Depends(get_dataset)) -> List[Region]:
    return [data.region for data in dataset.values() if data.region is not None]


@router.get("/{region_id}")
def get_region(region_id: str, dataset: Dict[str, RegionData] = Depends(get_dataset)) -> Dict:
    data = _region_data(dataset, region_id)
    return {
        "region": data.region,
        "aquifer_count": len(data.aquifers),
        "well_count": len(data.wells),
        "measurement_count": len(data.measurements),
    }


@router.get("/{region_id}/aquifers")
def list_aquifers(region_id: str, dataset: Dict[str, RegionData] = Depends(get_dataset)) -> List[Aquifer]:
    return _region_data(dataset, region_id).aquifers


@router.get("/{region_id}/wells")
def list_wells(
    region_id: str,
    aquifer_id: Optional[str] = Query(None, description="Only wells in this aquifer"),
    dataset: Dict[str, RegionData] = Depends(get_dataset),
) -> List[Well]:
    wells = _region_data(dataset, region_id).wells
    if aquifer_id:
        wells = [w for w in wells if w.aquifer_id == aquifer_id]
    return wells


@router.get("/{region_id}/wells/{well_id}/measurements")
def list_measurements(
    region_id: str, well_id: str, dataset: Dict[str, RegionData] = Depends(get_dataset)
) -> List[Measurement]:
    return [m for m in _region_data(dataset, region_id).measurements if m.well_id == well_id]


@router.get("/{region_id}/wells/{well_id}/series")
def well_series(
    region_id: str,
    well_id: str,
    method: InterpolationMethod = "pchip",
    steps: int = Query(100, ge=1, le=5000),
    dataset: Dict[str, RegionData] = Depends(get_dataset),
) -> List[ChartPoint]:
    """Dense water-table curve for one well, with the measured samples flagged."""
    data = _region_data(dataset, region_id)
    if not any(w.id == well_id for w in data.wells):
        raise HTTPException(status_code=404, detail=f"Unknown well: {well_id}")
    measurements = [m for m in data.measurements if m.well_id == well_id]
    return build_chart_series(measurements, method=method, steps=steps)
