import logging
from typing import List

from shapely.geometry import Point, shape
from shapely.prepared import prep

from hydrodata.models.schemas import Aquifer, Well
from hydrodata.services.geometry import feature_list


logger = logging.getLogger(__name__)


def assign_aquifers(wells: List[Well], aquifers: List[Aquifer]) -> List[Well]:
    """Fill in ``aquifer_id`` for wells lacking one, using point-in-polygon.

    The first aquifer (in list order) whose boundary covers the well wins.
    Wells outside every boundary, or already assigned, are returned unchanged.
    """
    shapes = []
    for aquifer in aquifers:
        for feature in feature_list(aquifer.geojson):
            geometry = feature.get("geometry")
            if not geometry:
                continue
            try:
                shapes.append((aquifer, prep(shape(geometry))))
            except Exception as exc:  # noqa
                logger.warning("Skipping invalid geometry in aquifer %s: %s", aquifer.id, exc)

    assigned = 0
    result: List[Well] = []
    for well in wells:
        if well.aquifer_id or not shapes:
            result.append(well)
            continue
        point = Point(well.lng, well.lat)
        match = next((aq for aq, geom in shapes if geom.covers(point)), None)
        if match is None:
            result.append(well)
            continue
        assigned += 1
        result.append(well.model_copy(update={"aquifer_id": match.id, "aquifer_name": match.name}))

    if assigned:
        logger.info("Assigned %d wells to aquifers by containment", assigned)
    return result
