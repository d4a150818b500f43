import logging
import math
from numbers import Real
from typing import Any, Dict, List, Optional, Tuple

from pyproj import CRS, Transformer


logger = logging.getLogger(__name__)

EMPTY_BOUNDS: Tuple[float, float, float, float] = (math.inf, math.inf, -math.inf, -math.inf)

_WGS84 = CRS.from_epsg(4326)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_position(value: Any) -> bool:
    return isinstance(value, list) and len(value) >= 2 and _is_number(value[0]) and _is_number(value[1])


def feature_list(geojson: Any) -> List[Dict[str, Any]]:
    """Features of a collection, or the document itself wrapped as a single feature."""
    if not isinstance(geojson, dict):
        return []
    if geojson.get("type") == "FeatureCollection":
        return [f for f in geojson.get("features") or [] if isinstance(f, dict)]
    return [geojson]


def as_feature_collection(geojson: Dict[str, Any]) -> Dict[str, Any]:
    if geojson.get("type") == "FeatureCollection":
        return geojson
    return {"type": "FeatureCollection", "features": [geojson]}


def _collect_geometries(geojson: Any) -> List[Dict[str, Any]]:
    geometries: List[Dict[str, Any]] = []
    if not isinstance(geojson, dict):
        return geometries
    kind = geojson.get("type")
    if kind == "FeatureCollection":
        for feature in geojson.get("features") or []:
            if isinstance(feature, dict) and feature.get("geometry"):
                geometries.append(feature["geometry"])
    elif kind == "Feature":
        if geojson.get("geometry"):
            geometries.append(geojson["geometry"])
    elif geojson.get("coordinates") is not None:
        geometries.append(geojson)
    return geometries


def calculate_bounds(geojson: Any) -> Tuple[float, float, float, float]:
    """Return ``(minLat, minLng, maxLat, maxLng)`` over every position in the document.

    Nested coordinate arrays are walked with an explicit stack, so arbitrarily
    deep (multi)polygon nesting never hits the recursion limit. Positions are
    ``[lng, lat, ...]``. A document without any position yields ``EMPTY_BOUNDS``;
    check it with :func:`bounds_are_valid` before use.
    """
    min_lat, min_lng, max_lat, max_lng = EMPTY_BOUNDS

    for geometry in _collect_geometries(geojson):
        coordinates = geometry.get("coordinates") if isinstance(geometry, dict) else None
        if coordinates is None:
            continue
        stack: List[Any] = [coordinates]
        while stack:
            coords = stack.pop()
            if not isinstance(coords, list):
                continue
            if _is_position(coords):
                lng, lat = float(coords[0]), float(coords[1])
                min_lat = min(min_lat, lat)
                max_lat = max(max_lat, lat)
                min_lng = min(min_lng, lng)
                max_lng = max(max_lng, lng)
            else:
                stack.extend(coords)

    return (min_lat, min_lng, max_lat, max_lng)


def bounds_are_valid(bounds: Tuple[float, float, float, float]) -> bool:
    min_lat, min_lng, max_lat, max_lng = bounds
    if not all(math.isfinite(v) for v in bounds):
        return False
    return min_lat <= max_lat and min_lng <= max_lng


def checked_bounds(geojson: Any) -> Optional[Tuple[float, float, float, float]]:
    bounds = calculate_bounds(geojson)
    return bounds if bounds_are_valid(bounds) else None


def declared_crs(geojson: Dict[str, Any]) -> Optional[CRS]:
    """CRS named by a legacy GeoJSON ``crs`` member, if any."""
    member = geojson.get("crs") if isinstance(geojson, dict) else None
    if not isinstance(member, dict):
        return None
    name = (member.get("properties") or {}).get("name")
    if not name:
        return None
    try:
        return CRS.from_user_input(name)
    except Exception as exc:
        raise ValueError(f"Unrecognised CRS in GeoJSON: {name}") from exc


def _copy_transformed(coordinates: Any, transformer: Transformer) -> Any:
    # Iterative copy; each stack item is (source list, destination list).
    if _is_position(coordinates):
        x, y = transformer.transform(coordinates[0], coordinates[1])
        return [x, y] + list(coordinates[2:])
    if not isinstance(coordinates, list):
        return coordinates
    root: List[Any] = []
    stack: List[Tuple[List[Any], List[Any]]] = [(coordinates, root)]
    while stack:
        src, dst = stack.pop()
        for child in src:
            if _is_position(child):
                x, y = transformer.transform(child[0], child[1])
                dst.append([x, y] + list(child[2:]))
            elif isinstance(child, list):
                nested: List[Any] = []
                dst.append(nested)
                stack.append((child, nested))
            else:
                dst.append(child)
    return root


def reproject_to_wgs84(geojson: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of the document in EPSG:4326 when it declares another CRS."""
    source = declared_crs(geojson)
    if source is None or source == _WGS84 or source.equals(_WGS84, ignore_axis_order=True):
        return geojson

    transformer = Transformer.from_crs(source, _WGS84, always_xy=True)
    logger.info("Reprojecting GeoJSON from %s to EPSG:4326", source.to_string())

    def convert(geometry: Any) -> Any:
        if not isinstance(geometry, dict) or "coordinates" not in geometry:
            return geometry
        return {**geometry, "coordinates": _copy_transformed(geometry["coordinates"], transformer)}

    result = {k: v for k, v in geojson.items() if k != "crs"}
    kind = geojson.get("type")
    if kind == "FeatureCollection":
        result["features"] = [
            {**f, "geometry": convert(f.get("geometry"))} for f in feature_list(geojson)
        ]
    elif kind == "Feature":
        result["geometry"] = convert(geojson.get("geometry"))
    else:
        result = convert(result)
    return result


def property_text(value: Any) -> str:
    """Render a feature property as text; ``None`` becomes ``""`` and 3.0 becomes ``"3"``."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
