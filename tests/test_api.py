"""
Tests for the KidChart API
Run: pytest tests/test_api.py -v
"""
import pytest
from fastapi.testclient import TestClient

from kidchart.api import server
from kidchart.models.reference import Standard
from kidchart.storage.local import JsonChildStore
from kidchart.storage.share import ShareStore


@pytest.fixture
def client(tmp_path, monkeypatch):
    with TestClient(server.app) as c:
        monkeypatch.setattr(server, "_child_store",
                            JsonChildStore(tmp_path / "children.json"))
        monkeypatch.setattr(server, "_share_store",
                            ShareStore(tmp_path / "shares", "https://kidchart.test"))
        server._children.clear()
        yield c
        server._children.clear()


@pytest.fixture
def child_id(client):
    r = client.post("/children", json={
        "name": "Test Baby", "date_of_birth": "2024-01-01", "gender": "male",
    })
    assert r.status_code == 201
    return r.json()["id"]


class TestHealthAndInfo:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "healthy"
        assert data["reference_tables"] == 12
        assert data["standards"] == ["WHO", "NHS"]

    def test_standards(self, client):
        r = client.get("/standards")
        assert r.status_code == 200
        by_name = {s["standard"]: s for s in r.json()}
        assert len(by_name["WHO"]["bands"]) == 7
        assert len(by_name["NHS"]["bands"]) == 9
        assert by_name["NHS"]["label"] == "UK (NHS)"

    def test_docs_available(self, client):
        assert client.get("/docs").status_code == 200


class TestAge:

    def test_age(self, client):
        r = client.get("/age", params={"date_of_birth": "2024-01-15",
                                       "measurement_date": "2024-02-15"})
        assert r.status_code == 200
        assert r.json() == {"age_in_days": 31, "age": "1m 1d"}

    def test_bad_date(self, client):
        r = client.get("/age", params={"date_of_birth": "15/01/2024",
                                       "measurement_date": "2024-02-15"})
        assert r.status_code == 400


class TestReferenceEndpoints:

    def test_lines(self, client):
        r = client.get("/reference/lines", params={
            "measurement_type": "height", "gender": "male", "standard": "WHO"})
        assert r.status_code == 200
        data = r.json()
        assert [l["band"] for l in data["lines"]] == list(Standard.WHO.band_labels)
        assert data["age_unit"] == "years"
        assert data["lines"][3]["points"][0] == {"age_days": 0, "value": 49.9}

    def test_lines_nhs(self, client):
        r = client.get("/reference/lines", params={
            "measurement_type": "weight", "gender": "female", "standard": "NHS"})
        assert r.status_code == 200
        assert len(r.json()["lines"]) == 9

    def test_no_chart_for_standard(self, client):
        r = client.get("/reference/lines", params={"standard": "CDC"})
        assert r.status_code == 404
        assert "No chart available" in r.json()["detail"]

    def test_invalid_measurement_type(self, client):
        r = client.get("/reference/lines", params={"measurement_type": "bmi"})
        assert r.status_code == 422

    def test_interpolate(self, client):
        r = client.get("/reference/interpolate", params={"age_days": 15})
        assert r.status_code == 200
        assert r.json()["values"]["50th"] == pytest.approx(52.3)

    def test_classify(self, client):
        r = client.get("/classify", params={
            "value": 52.3, "age_days": 15, "measurement_type": "height",
            "gender": "male", "standard": "WHO"})
        assert r.status_code == 200
        assert r.json()["band"] in ("25th-50th", "50th-75th")

    def test_classify_extremes(self, client):
        low = client.get("/classify", params={"value": 1, "age_days": 100}).json()
        high = client.get("/classify", params={"value": 500, "age_days": 100,
                                               "standard": "NHS"}).json()
        assert low["band"] == "<3rd" and low["lower"] is None
        assert high["band"] == ">99.6th" and high["upper"] is None


class TestChildren:

    def test_create_and_get(self, client, child_id):
        r = client.get(f"/children/{child_id}")
        assert r.status_code == 200
        assert r.json()["dateOfBirth"] == "2024-01-01"
        assert client.get("/children").json()["count"] == 1

    def test_persisted(self, client, child_id):
        (saved,) = server._child_store.load_children()
        assert saved.id == child_id

    def test_get_nonexistent(self, client):
        assert client.get("/children/nonexistent-999").status_code == 404

    def test_invalid_gender(self, client):
        r = client.post("/children", json={
            "name": "X", "date_of_birth": "2024-01-01", "gender": "unknown"})
        assert r.status_code == 422

    def test_delete(self, client, child_id):
        assert client.delete(f"/children/{child_id}").status_code == 204
        assert client.get(f"/children/{child_id}").status_code == 404


class TestMeasurements:

    def test_add_measurement(self, client, child_id):
        r = client.post(f"/children/{child_id}/measurements", json={
            "date": "2024-03-01", "height": 58.0, "weight": 5.6})
        assert r.status_code == 201
        data = r.json()
        assert data["age_in_days"] == 60
        assert data["age"] == "2 months"
        assert set(data["percentiles"]) == {"height", "weight"}

    def test_requires_a_value(self, client, child_id):
        r = client.post(f"/children/{child_id}/measurements",
                        json={"date": "2024-03-01"})
        assert r.status_code == 422

    def test_negative_value(self, client, child_id):
        r = client.post(f"/children/{child_id}/measurements",
                        json={"date": "2024-03-01", "weight": -1.0})
        assert r.status_code == 422

    def test_delete_measurement(self, client, child_id):
        mid = client.post(f"/children/{child_id}/measurements", json={
            "date": "2024-02-01", "weight": 4.5}).json()["id"]
        url = f"/children/{child_id}/measurements/{mid}"
        assert client.delete(url).status_code == 204
        assert client.delete(url).status_code == 404

    def test_percentiles_follow_location(self, client, child_id):
        client.post(f"/children/{child_id}/measurements", json={
            "date": "2024-02-01", "head_circumference": 37.0})
        client.post(f"/children/{child_id}/measurements", json={
            "date": "2024-04-01", "height": 61.0})

        r = client.get(f"/children/{child_id}/percentiles")
        assert r.status_code == 200
        newest_first = r.json()
        assert [m["date"] for m in newest_first] == ["2024-04-01", "2024-02-01"]

        assert client.put("/location", json={"location": "NHS"}).status_code == 200
        assert client.get("/location").json() == {"location": "NHS"}

        nhs_labels = set(Standard.NHS.band_labels)
        for m in client.get(f"/children/{child_id}/percentiles").json():
            for label in m["percentiles"].values():
                parts = label.lstrip("<>").split("-")
                assert set(parts) <= nhs_labels

    def test_invalid_location(self, client):
        assert client.put("/location", json={"location": "CDC"}).status_code == 422


class TestSharing:

    def test_share_and_load(self, client, child_id):
        r = client.post("/share", json={})
        assert r.status_code == 200
        data = r.json()
        assert data["success"] is True
        assert data["shareUrl"].endswith(f"?share={data['shareId']}")

        r = client.get(f"/share/{data['shareId']}")
        assert r.status_code == 200
        assert [c["id"] for c in r.json()["children"]] == [child_id]

    def test_share_unknown_child(self, client):
        r = client.post("/share", json={"child_ids": ["missing"]})
        assert r.status_code == 404

    def test_invalid_share_id(self, client):
        assert client.get("/share/not_valid").status_code == 400
        assert client.post("/share", json={"share_id": "BAD"}).status_code == 400

    def test_share_not_found(self, client):
        r = client.get("/share/calm-river-0000")
        assert r.status_code == 404
