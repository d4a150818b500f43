"""Read an installed canonical dataset back into entities.

Layout per region folder: ``region.geojson``, ``aquifers.geojson``,
``wells.csv`` and ``water_levels.csv``; folders are listed by ``regions.json``.
"""
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Union

from hydrodata.models.schemas import Aquifer, ManifestEntry, Measurement, Region, Well
from hydrodata.services.containment import assign_aquifers
from hydrodata.services.exporter import AQUIFERS_FILE, REGION_FILE, WATER_LEVELS_FILE, WELLS_FILE
from hydrodata.services.geometry import as_feature_collection, checked_bounds, feature_list, property_text
from hydrodata.services.manifest import load_manifest
from hydrodata.services.tabular import parse_table


logger = logging.getLogger(__name__)

# padding (degrees) around wells when an aquifer has no boundary file
WELL_BOUNDS_PADDING = 0.1


@dataclass
class RegionData:
    region: Optional[Region]
    aquifers: List[Aquifer] = field(default_factory=list)
    wells: List[Well] = field(default_factory=list)
    measurements: List[Measurement] = field(default_factory=list)


def _to_float(text: str, default: float = 0.0) -> float:
    if not text:
        return default
    try:
        return float(text)
    except ValueError:
        return math.nan


def _read_rows(path: Path):
    if not path.exists():
        return []
    _, rows = parse_table(path.read_text(encoding="utf-8-sig"))
    return rows


def region_folder(data_root: Path, entry: ManifestEntry) -> Path:
    return Path(data_root) / PurePosixPath(entry.path).name


def load_region(folder: Path, entry: ManifestEntry) -> Optional[Region]:
    path = folder / REGION_FILE
    try:
        geojson = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Error loading region %s: %s", entry.name, exc)
        return None
    return Region(
        id=entry.id,
        name=entry.name,
        geojson=as_feature_collection(geojson),
        bounds=checked_bounds(geojson),
    )


def load_wells(folder: Path, region_id: str) -> List[Well]:
    wells: List[Well] = []
    for row in _read_rows(folder / WELLS_FILE):
        well_id = row.get("well_id", "")
        lat = _to_float(row.get("lat", ""))
        lng = _to_float(row.get("long", ""))
        if not well_id or not math.isfinite(lat) or not math.isfinite(lng) or lat == 0 or lng == 0:
            continue
        gse = _to_float(row.get("gse", ""))
        wells.append(
            Well(
                id=well_id,
                name=row.get("well_name") or well_id,
                lat=lat,
                lng=lng,
                gse=gse if math.isfinite(gse) else 0.0,
                aquifer_id=row.get("aquifer_id", ""),
                aquifer_name=row.get("aquifer_name", ""),
                region_id=region_id,
            )
        )
    return wells


def load_measurements(folder: Path, well_ids: Optional[set] = None) -> List[Measurement]:
    """Measurement rows with a well id, a date and a finite WTE.

    When ``well_ids`` is given, rows for other wells are dropped.
    """
    measurements: List[Measurement] = []
    dropped = 0
    for row in _read_rows(folder / WATER_LEVELS_FILE):
        well_id = row.get("well_id", "")
        date = row.get("date", "")
        wte = _to_float(row.get("wte", ""))
        if not well_id or not date or not math.isfinite(wte):
            continue
        if well_ids is not None and well_id not in well_ids:
            dropped += 1
            continue
        measurements.append(
            Measurement(
                well_id=well_id,
                well_name=row.get("well_name", ""),
                date=date,
                wte=wte,
                aquifer_id=row.get("aquifer_id", ""),
            )
        )
    if dropped:
        logger.info("Dropped %d measurements for unknown wells in %s", dropped, folder)
    return measurements


def _aquifers_from_wells(region_id: str, wells: List[Well]) -> List[Aquifer]:
    names: Dict[str, str] = {}
    for well in wells:
        if well.aquifer_id and well.aquifer_id not in names:
            names[well.aquifer_id] = well.aquifer_name
    aquifers = []
    for aquifer_id, name in names.items():
        members = [w for w in wells if w.aquifer_id == aquifer_id]
        lats = [w.lat for w in members]
        lngs = [w.lng for w in members]
        aquifers.append(
            Aquifer(
                id=aquifer_id,
                name=name,
                region_id=region_id,
                geojson={"type": "FeatureCollection", "features": []},
                bounds=(
                    min(lats) - WELL_BOUNDS_PADDING,
                    min(lngs) - WELL_BOUNDS_PADDING,
                    max(lats) + WELL_BOUNDS_PADDING,
                    max(lngs) + WELL_BOUNDS_PADDING,
                ),
            )
        )
    return aquifers


def load_aquifers(folder: Path, region_id: str, wells: List[Well]) -> List[Aquifer]:
    """Aquifers grouped by ``aquifer_id``; synthesised from wells when no boundary file exists."""
    aquifers: List[Aquifer] = []
    path = folder / AQUIFERS_FILE
    if path.exists():
        try:
            geojson = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Error loading aquifers for %s: %s", region_id, exc)
            geojson = None

        groups: Dict[str, Dict] = {}
        for feature in feature_list(geojson):
            props = feature.get("properties") or {}
            aquifer_id = property_text(props.get("aquifer_id")) or "unknown"
            group = groups.setdefault(
                aquifer_id,
                {"features": [], "name": property_text(props.get("aquifer_name")) or f"Aquifer {aquifer_id}"},
            )
            group["features"].append(feature)

        for aquifer_id, group in groups.items():
            collection = {"type": "FeatureCollection", "features": group["features"]}
            aquifers.append(
                Aquifer(
                    id=aquifer_id,
                    name=group["name"],
                    region_id=region_id,
                    geojson=collection,
                    bounds=checked_bounds(collection),
                )
            )

    if not aquifers:
        aquifers = _aquifers_from_wells(region_id, wells)
    return aquifers


def load_region_data(data_root: Path, entry: ManifestEntry) -> RegionData:
    folder = region_folder(data_root, entry)
    region = load_region(folder, entry)
    wells = load_wells(folder, entry.id)
    aquifers = load_aquifers(folder, entry.id, wells)
    wells = assign_aquifers(wells, aquifers)
    measurements = load_measurements(folder, {w.id for w in wells})
    return RegionData(region=region, aquifers=aquifers, wells=wells, measurements=measurements)


def load_all_data(data_root: Union[str, Path], manifest_source: Union[str, Path, None] = None) -> Dict[str, RegionData]:
    """Every region listed by the manifest, keyed by region id."""
    data_root = Path(data_root)
    source = manifest_source if manifest_source is not None else data_root / "regions.json"
    loaded: Dict[str, RegionData] = {}
    for entry in load_manifest(source):
        loaded[entry.id] = load_region_data(data_root, entry)
        logger.info(
            "Loaded region %s: %d aquifers, %d wells, %d measurements",
            entry.id,
            len(loaded[entry.id].aquifers),
            len(loaded[entry.id].wells),
            len(loaded[entry.id].measurements),
        )
    return loaded
