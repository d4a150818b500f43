"""Shared fixtures: a small two-aquifer upload set and an API client."""
import json
from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from hydrodata import config
from hydrodata.models.schemas import UploadedFile
from hydrodata.services.cache import UploadStore


def square(lng: float, lat: float, size: float = 1.0) -> Dict:
    return {
        "type": "Polygon",
        "coordinates": [[[lng, lat], [lng + size, lat], [lng + size, lat + size], [lng, lat + size], [lng, lat]]],
    }


REGION_GEOJSON = {
    "type": "FeatureCollection",
    "features": [{"type": "Feature", "properties": {"NAME": "Basin"}, "geometry": square(-122.0, 42.0, 2.0)}],
}

AQUIFER_GEOJSON = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"AQ_ID": 1, "AQ_NAME": "Upper"}, "geometry": square(-122.0, 42.0)},
        {"type": "Feature", "properties": {"AQ_ID": 2, "AQ_NAME": "Lower"}, "geometry": square(-121.0, 43.0)},
    ],
}

WELLS_CSV = "\n".join(
    [
        "Well_ID,Latitude,Longitude,Aquifer_ID",
        "W1,42.5,-121.5,1",
        "W2,43.5,-120.5,2",
        "W3,42.2,-121.8,",
    ]
)

LEVELS_CSV = "\n".join(
    [
        "well_id,date,wte",
        "W1,1/5/2009,101.5",
        "W1,2/5/2009,102.0",
        "W2,1/15/2009,88.0",
        "W9,1/15/2009,70.0",
    ]
)


class FakeRedis:
    def __init__(self):
        self.data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        self.data[key] = value


@pytest.fixture
def make_upload():
    def factory(
        kind: str, data, mapping: Optional[Dict[str, str]] = None, columns=None, state: str = "accepted"
    ) -> UploadedFile:
        if isinstance(data, dict):
            features = data.get("features") or [data]
            cols = list((features[0].get("properties") or {}).keys()) if features else []
            file_type = "geojson"
        else:
            cols = list(data[0].keys()) if data else []
            file_type = "csv"
        return UploadedFile(
            name=f"{kind}.upload",
            kind=kind,
            type=file_type,
            data=data,
            columns=columns if columns is not None else cols,
            mapping=mapping or {},
            mapping_state=state,
        )

    return factory


@pytest.fixture
def upload_set(make_upload):
    from hydrodata.services.tabular import parse_table

    _, well_rows = parse_table(WELLS_CSV)
    _, level_rows = parse_table(LEVELS_CSV)
    return {
        "region": make_upload("region", REGION_GEOJSON),
        "aquifer": make_upload("aquifer", AQUIFER_GEOJSON, {"aquifer_id": "AQ_ID", "aquifer_name": "AQ_NAME"}),
        "wells": make_upload(
            "wells",
            well_rows,
            {"well_id": "Well_ID", "lat": "Latitude", "long": "Longitude", "aquifer_id": "Aquifer_ID"},
        ),
        "measurements": make_upload("measurements", level_rows, {"well_id": "well_id", "date": "date", "wte": "wte"}),
    }


@pytest.fixture
def installed_dataset(tmp_path):
    """A data root with one installed region, in the canonical layout."""
    folder = tmp_path / "klamath"
    folder.mkdir()
    (folder / "region.geojson").write_text(
        json.dumps({"type": "Feature", "properties": {}, "geometry": square(-122.0, 42.0, 2.0)})
    )
    (folder / "aquifers.geojson").write_text(
        json.dumps(
            {
                "type": "FeatureCollection",
                "features": [
                    {"type": "Feature", "properties": {"aquifer_id": "1", "aquifer_name": "Upper"}, "geometry": square(-122.0, 42.0)},
                    {"type": "Feature", "properties": {"aquifer_id": "2", "aquifer_name": "Lower"}, "geometry": square(-121.0, 43.0)},
                ],
            }
        )
    )
    (folder / "wells.csv").write_text(
        "well_id,lat,long,aquifer_id\nW1,42.5,-121.5,1\nW2,43.5,-120.5,\nW3,0,-121.0,1\nW4,abc,-121.0,1\n"
    )
    (folder / "water_levels.csv").write_text(
        "well_id,date,wte,aquifer_id\n"
        "W1,2009-01-05,100.0,1\n"
        "W1,2009-03-05,104.0,1\n"
        "W1,2009-02-05,101.0,1\n"
        "W1,not a date,99.0,1\n"
        "W2,2009-01-05,,\n"
        "W3,2009-01-05,50.0,1\n"
        "W1,2009-04-05,xyz,1\n"
    )
    (tmp_path / "regions.json").write_text(
        json.dumps([{"id": "klamath", "path": "/data/klamath", "name": "Klamath Basin"}])
    )
    return tmp_path


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(fake_redis, installed_dataset, monkeypatch):
    from hydrodata.api.uploads import get_upload_store
    from hydrodata.main import app

    monkeypatch.setattr(config, "DATA_ROOT", installed_dataset)
    monkeypatch.setattr(config, "MANIFEST_SOURCE", str(installed_dataset / "regions.json"))
    app.dependency_overrides[get_upload_store] = lambda: UploadStore(client=fake_redis, ttl=60)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
