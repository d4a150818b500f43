import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict

import geopandas as gpd


logger = logging.getLogger(__name__)


def shapefile_zip_to_geojson(payload: bytes) -> Dict[str, Any]:
    """Convert a zipped shapefile bundle (.shp/.dbf/.shx/.prj) to a WGS84 feature collection."""
    with tempfile.TemporaryDirectory() as tmp:
        archive = Path(tmp) / "upload.zip"
        archive.write_bytes(payload)
        gdf = gpd.read_file(f"zip://{archive}")

    if gdf.crs is not None and gdf.crs.to_epsg() != 4326:
        logger.info("Reprojecting shapefile from %s to EPSG:4326", gdf.crs.to_string())
        gdf = gdf.to_crs(epsg=4326)
    return json.loads(gdf.to_json())
