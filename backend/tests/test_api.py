import base64
import io
import json
import zipfile

from conftest import AQUIFER_GEOJSON, LEVELS_CSV, REGION_GEOJSON, WELLS_CSV


def _upload(client, kind, filename, content):
    resp = client.post(f"/api/uploads/{kind}", json={"filename": filename, "content": content})
    assert resp.status_code == 200, resp.text
    return resp.json()


def _upload_all(client):
    region = _upload(client, "region", "region.geojson", json.dumps(REGION_GEOJSON))
    aquifer = _upload(client, "aquifer", "aquifers.geojson", json.dumps(AQUIFER_GEOJSON))
    wells = _upload(client, "wells", "wells.csv", WELLS_CSV)
    levels = _upload(client, "measurements", "levels.csv", LEVELS_CSV)

    patched = client.patch(
        f"/api/uploads/{aquifer['token']}/mapping",
        json={"mapping": {"aquifer_id": "AQ_ID", "aquifer_name": "AQ_NAME"}},
    )
    assert patched.status_code == 200
    for created in (aquifer, wells, levels):
        assert client.post(f"/api/uploads/{created['token']}/accept").status_code == 200
    return {
        "region": region["token"],
        "aquifer": aquifer["token"],
        "wells": wells["token"],
        "measurements": levels["token"],
    }


def test_root(client):
    assert client.get("/").json() == {"status": "ok", "service": "groundwater-dataset-service"}


def test_upload_lifecycle(client):
    created = _upload(client, "wells", "wells.csv", WELLS_CSV)
    token = created["token"]
    assert created["upload"]["mapping"]["well_id"] == "Well_ID"
    assert [f["key"] for f in created["fields"]] == ["well_id", "lat", "long", "aquifer_id"]

    cleared = client.patch(f"/api/uploads/{token}/mapping", json={"mapping": {"aquifer_id": ""}}).json()
    assert "aquifer_id" not in cleared["upload"]["mapping"]
    assert cleared["upload"]["mapping_state"] == "proposed"

    accepted = client.post(f"/api/uploads/{token}/accept").json()
    assert accepted["upload"]["mapping_state"] == "accepted"

    stored = client.get(f"/api/uploads/{token}").json()
    assert stored["upload"] == accepted["upload"]


def test_base64_upload(client):
    content = base64.b64encode(WELLS_CSV.encode("utf-8")).decode("ascii")
    resp = client.post("/api/uploads/wells", json={"filename": "wells.csv", "content": content, "encoding": "base64"})
    assert resp.status_code == 200
    assert len(resp.json()["upload"]["data"]) == 3

    bad = client.post("/api/uploads/wells", json={"filename": "wells.csv", "content": "%%%", "encoding": "base64"})
    assert bad.status_code == 400


def test_upload_errors(client):
    resp = client.post("/api/uploads/wells", json={"filename": "wells.pdf", "content": "x"})
    assert resp.status_code == 400
    assert "Unsupported file type" in resp.json()["detail"]

    assert client.post("/api/uploads/pumps", json={"filename": "a.csv", "content": "a"}).status_code == 422
    assert client.get("/api/uploads/does-not-exist").status_code == 404


def test_mapping_to_unknown_column_is_rejected(client):
    token = _upload(client, "wells", "wells.csv", WELLS_CSV)["token"]
    resp = client.patch(f"/api/uploads/{token}/mapping", json={"mapping": {"lat": "Nope"}})
    assert resp.status_code == 400
    assert "Nope" in resp.json()["detail"]


def test_field_tables(client):
    fields = client.get("/api/ingest/fields/measurements").json()
    assert [f["label"] for f in fields if f["required"]] == ["Well ID", "Date", "Water Table Elevation"]
    assert client.get("/api/ingest/fields/region").json() == []
    formats = client.get("/api/ingest/date-formats").json()
    assert "iso" in [f["value"] for f in formats]


def test_validate(client):
    tokens = _upload_all(client)
    result = client.post("/api/ingest/validate", json=tokens).json()
    assert result["is_valid"] is True
    assert result["dropped_measurements"] == 1

    missing = client.post("/api/ingest/validate", json={"region": tokens["region"]}).json()
    assert missing["is_valid"] is False
    assert missing["errors"] == [
        "Aquifer file is required",
        "Wells file is required",
        "Water levels file is required",
    ]


def test_mapping_edit_requires_new_acceptance(client):
    tokens = _upload_all(client)
    client.patch(f"/api/uploads/{tokens['wells']}/mapping", json={"mapping": {"aquifer_id": ""}})

    result = client.post("/api/ingest/validate", json=tokens).json()
    assert result["is_valid"] is False
    assert result["errors"] == ["wells: column mapping has not been accepted"]

    resp = client.post("/api/ingest/export", json=dict(tokens, region_name="Klamath Basin"))
    assert resp.status_code == 422

    client.post(f"/api/uploads/{tokens['wells']}/accept")
    assert client.post("/api/ingest/validate", json=tokens).json()["is_valid"] is True


def test_validate_rejects_token_in_wrong_slot(client):
    tokens = _upload_all(client)
    tokens["aquifer"], tokens["wells"] = tokens["wells"], tokens["aquifer"]
    resp = client.post("/api/ingest/validate", json=tokens)
    assert resp.status_code == 400


def test_export_archive(client):
    tokens = _upload_all(client)
    resp = client.post(
        "/api/ingest/export", json=dict(tokens, region_name="Klamath Basin", date_format="us")
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/zip"
    assert 'filename="klamath-basin.zip"' in resp.headers["content-disposition"]
    assert resp.headers["x-wells-exported"] == "3"
    assert resp.headers["x-measurements-exported"] == "3"

    with zipfile.ZipFile(io.BytesIO(resp.content)) as archive:
        manifest = json.loads(archive.read("regions.json"))
        levels = archive.read("klamath-basin/water_levels.csv").decode("utf-8")
    assert [entry["id"] for entry in manifest] == ["klamath", "klamath-basin"]
    assert "W1,2009-01-05,101.5," in levels


def test_export_blocked(client):
    tokens = _upload_all(client)
    del tokens["wells"]
    resp = client.post("/api/ingest/export", json=dict(tokens, region_name="Klamath Basin"))
    assert resp.status_code == 422
    body = resp.json()
    assert body["is_valid"] is False
    assert body["errors"] == ["Wells file is required"]


def test_export_bad_region_name(client):
    tokens = _upload_all(client)
    resp = client.post("/api/ingest/export", json=dict(tokens, region_name="Klamath", existing_regions=["klamath"]))
    assert resp.status_code == 400
    assert resp.json()["detail"] == 'A region with folder name "klamath" already exists'


def test_export_refuses_installed_region(client):
    tokens = _upload_all(client)
    resp = client.post("/api/ingest/export", json=dict(tokens, region_name="Klamath"))
    assert resp.status_code == 400
    assert "already exists" in resp.json()["detail"]


def test_interpolate_endpoint(client):
    resp = client.post("/api/interpolate", json={"x": [0, 10], "y": [0, 100], "target_x": [5], "method": "natural"})
    assert resp.json() == {"method": "natural", "values": [50.0]}

    resp = client.post("/api/interpolate", json={"x": [0, 1], "y": [1], "target_x": [0.5]})
    assert resp.status_code == 400

    resp = client.post("/api/interpolate", json={"x": [0], "y": [1], "target_x": [0.5], "method": "akima"})
    assert resp.status_code == 422


def test_region_endpoints(client):
    regions = client.get("/api/regions").json()
    assert [(r["id"], r["name"]) for r in regions] == [("klamath", "Klamath Basin")]
    assert regions[0]["bounds"] == [42.0, -122.0, 44.0, -120.0]

    summary = client.get("/api/regions/klamath").json()
    assert (summary["aquifer_count"], summary["well_count"], summary["measurement_count"]) == (2, 2, 5)

    assert len(client.get("/api/regions/klamath/aquifers").json()) == 2
    wells = client.get("/api/regions/klamath/wells", params={"aquifer_id": "2"}).json()
    assert [w["id"] for w in wells] == ["W2"]
    assert len(client.get("/api/regions/klamath/wells/W1/measurements").json()) == 4

    assert client.get("/api/regions/nowhere").status_code == 404


def test_well_series(client):
    points = client.get("/api/regions/klamath/wells/W1/series", params={"steps": 10}).json()
    # 11 curve points plus three dated samples; the undated row is skipped
    assert len(points) == 14
    assert sum(1 for p in points if not p["is_interpolated"]) == 5
    assert client.get("/api/regions/klamath/wells/W9/series").status_code == 404
    assert client.get("/api/regions/klamath/wells/W1/series", params={"steps": 0}).status_code == 422
