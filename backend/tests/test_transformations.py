from pyproj import Transformer

from hydrodata.services.geometry import declared_crs, reproject_to_wgs84


def _utm_point_feature():
    tr = Transformer.from_crs("EPSG:4326", "EPSG:32631", always_xy=True)
    # Paris approx: lon=2.2945, lat=48.8584 (Eiffel Tower)
    x, y = tr.transform(2.2945, 48.8584)
    return {
        "type": "FeatureCollection",
        "crs": {"type": "name", "properties": {"name": "urn:ogc:def:crs:EPSG::32631"}},
        "features": [
            {"type": "Feature", "properties": {"id": 1}, "geometry": {"type": "Point", "coordinates": [x, y]}},
            {
                "type": "Feature",
                "properties": {"id": 2},
                "geometry": {"type": "Polygon", "coordinates": [[[x, y], [x + 1000, y], [x + 1000, y + 1000], [x, y]]]},
            },
        ],
    }


def test_utm31n_collection_reprojected_to_wgs84():
    doc = reproject_to_wgs84(_utm_point_feature())
    assert "crs" not in doc
    lon, lat = doc["features"][0]["geometry"]["coordinates"]
    assert abs(lon - 2.2945) < 1e-6
    assert abs(lat - 48.8584) < 1e-6
    ring = doc["features"][1]["geometry"]["coordinates"][0]
    assert len(ring) == 4
    assert abs(ring[0][0] - 2.2945) < 1e-6
    assert ring[1][0] > ring[0][0]
    assert doc["features"][1]["properties"] == {"id": 2}


def test_wgs84_document_is_untouched():
    doc = {
        "type": "Feature",
        "crs": {"type": "name", "properties": {"name": "EPSG:4326"}},
        "geometry": {"type": "Point", "coordinates": [1.0, 2.0]},
    }
    assert reproject_to_wgs84(doc) is doc


def test_document_without_crs_member():
    doc = {"type": "Feature", "geometry": {"type": "Point", "coordinates": [1.0, 2.0]}}
    assert declared_crs(doc) is None
    assert reproject_to_wgs84(doc) is doc
