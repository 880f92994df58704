from fastapi.testclient import TestClient

from tests.unit._bootstrap import ensure_project_on_path


ensure_project_on_path()

from api.main import app


def _payload(**overrides):
    payload = {
        "series": [
            {"id": "s1", "data": [{"x": 0, "y": 1}, {"x": 10, "y": 1}, {"x": 20, "y": 1}, {"x": 30, "y": 1}]},
            {"id": "s2", "data": [{"x": 0, "y": 2}, {"x": 10, "y": None}, {"x": 20, "y": 2}, {"x": 30, "y": 2}]},
        ],
        "fix_distance": 1,
    }
    payload.update(overrides)
    return payload


def test_health_check():
    with TestClient(app) as client:
        response = client.get("/health")
        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "healthy"
        assert payload["gap_fix"]["policy"] == "nearest_non_gap"


def test_gap_fix_endpoint():
    with TestClient(app) as client:
        response = client.post("/series/gap-fix", json=_payload())
        assert response.status_code == 200
        assert "X-Request-ID" in response.headers
        body = response.json()

        s1, s2 = body["series"]
        assert [p["x"] for p in s1["data"]] == [0, 1, 10, 19, 20, 30]
        assert [p["y"] for p in s1["data"]] == [1, 1, 1, 1, 1, 1]
        assert [p["y"] for p in s2["data"]] == [2, None, None, None, 2, 2]
        assert [p["type"] for p in s2["data"]] == ["original", "fix", "gap", "fix", "original", "original"]
        assert s2["data"][1]["marker"] == {"enabled": False, "states": {"hover": {"enabled": False}}}
        assert s2["data"][0]["marker"] is None
        assert body["meta"]["points_added"] == 4

        # Meme route sous /api.
        compat = client.post("/api/series/gap-fix", json=_payload())
        assert compat.status_code == 200
        assert compat.json()["series"] == body["series"]


def test_gap_fix_endpoint_is_idempotent():
    with TestClient(app) as client:
        first = client.post("/series/gap-fix", json=_payload()).json()
        again = client.post("/series/gap-fix", json=_payload(series=first["series"])).json()
        assert again["series"] == first["series"]
        assert again["meta"]["points_added"] == 0


def test_gap_fix_endpoint_rejects_misaligned_series():
    with TestClient(app) as client:
        payload = _payload()
        payload["series"][1]["data"][3]["x"] = 40
        response = client.post("/series/gap-fix", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "MisalignedSeriesError"


def test_gap_fix_endpoint_validates_request():
    with TestClient(app) as client:
        assert client.post("/series/gap-fix", json=_payload(fix_distance=0)).status_code == 422
        assert client.post("/series/gap-fix", json=_payload(policy="linear")).status_code == 422


def test_empty_series_list_is_noop():
    with TestClient(app) as client:
        response = client.post("/series/gap-fix", json={"series": []})
        assert response.status_code == 200
        assert response.json()["series"] == []


def test_gap_fix_figure_endpoint():
    with TestClient(app) as client:
        response = client.post("/series/gap-fix/figure", json=_payload(title="Stack", x_is_epoch_ms=True))
        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "plotly"

        traces = body["figure"]["data"]
        assert [t["name"] for t in traces] == ["s1", "s2"]
        assert traces[1]["x"] == [0, 1, 10, 19, 20, 30]
        assert traces[1]["y"] == [2, None, None, None, 2, 2]
        assert traces[1]["marker"]["size"] == [5, 0, 5, 0, 5, 5]
        assert body["figure"]["layout"]["xaxis"]["type"] == "date"


def test_gap_fix_figure_endpoint_rejects_misaligned_series():
    with TestClient(app) as client:
        payload = _payload()
        payload["series"][1]["data"][3]["x"] = 40
        response = client.post("/series/gap-fix/figure", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "MisalignedSeriesError"
