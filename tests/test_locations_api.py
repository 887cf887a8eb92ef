# tests/test_locations_api.py

from app.models.location import County, SubCounty
from app.services.locations import KENYA_COUNTIES, seed_locations


def test_seed_is_idempotent(db):
    first = seed_locations(db)
    assert first == 47 + 17
    assert seed_locations(db) == 0
    assert db.query(County).count() == 47
    assert db.query(SubCounty).count() == 17


def test_county_codes_are_unique():
    codes = [code for code, _ in KENYA_COUNTIES]
    assert len(set(codes)) == len(codes) == 47


def test_list_counties_sorted_by_name(client, locations):
    resp = client.get("/v1/locations/counties")

    assert resp.status_code == 200
    names = [c["name"] for c in resp.json()]
    assert len(names) == 47
    assert names == sorted(names)
    assert names[0] == "Baringo"


def test_county_detail_includes_sub_counties(client, db, locations):
    nairobi = db.query(County).filter_by(code="047").one()

    resp = client.get(f"/v1/locations/counties/{nairobi.id}")

    assert resp.status_code == 200
    data = resp.json()
    assert data["code"] == "047"
    assert "Westlands" in [s["name"] for s in data["sub_counties"]]


def test_sub_counties_for_county(client, db, locations):
    nairobi = db.query(County).filter_by(code="047").one()
    kisumu = db.query(County).filter_by(code="042").one()

    assert len(client.get(f"/v1/locations/counties/{nairobi.id}/sub-counties").json()) == 17
    assert client.get(f"/v1/locations/counties/{kisumu.id}/sub-counties").json() == []


def test_get_sub_county(client, db, locations):
    kibra = db.query(SubCounty).filter_by(name="Kibra").one()

    resp = client.get(f"/v1/locations/sub-counties/{kibra.id}")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Kibra"


def test_missing_locations_are_404(client, locations):
    assert client.get("/v1/locations/counties/9999").status_code == 404
    assert client.get("/v1/locations/counties/9999/sub-counties").status_code == 404
    assert client.get("/v1/locations/sub-counties/9999").status_code == 404
