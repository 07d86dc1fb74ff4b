import pytest
from fastapi.testclient import TestClient

import srbweather.main as main
from srbweather.main import app
from srbweather.maps.view import MapView
from srbweather.models.health import ServiceStatus
from srbweather.session import WeatherSession


@pytest.fixture
def api(monkeypatch, store, make_client, open_meteo_handler):
    async def library_ready(*args, **kwargs):
        return True

    def fake_create_session():
        return WeatherSession(make_client(open_meteo_handler), store, MapView())

    monkeypatch.setattr(main, "create_session", fake_create_session)
    monkeypatch.setattr(main, "probe_map_library", library_ready)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def offline_map_api(monkeypatch, store, make_client, open_meteo_handler):
    async def library_ready(*args, **kwargs):
        return False

    def fake_create_session():
        return WeatherSession(make_client(open_meteo_handler), store, MapView())

    monkeypatch.setattr(main, "create_session", fake_create_session)
    monkeypatch.setattr(main, "probe_map_library", library_ready)
    with TestClient(app) as client:
        yield client


def test_root():
    client = TestClient(app)
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Hello World"}


def test_list_cities():
    client = TestClient(app)
    response = client.get("/cities", params={"q": "sad"})
    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["Novi Sad"]
    assert len(client.get("/cities").json()) == 10


def test_nearest():
    client = TestClient(app)
    response = client.get("/nearest", params={"lat": 44.8, "lon": 20.47})
    assert response.status_code == 200
    data = response.json()
    assert data["nearest"]["name"] == "Beograd"
    assert data["distance_km"] < 10


def test_forecast_after_startup(api):
    response = api.get("/forecast", params={"wait": True})
    assert response.status_code == 200
    data = response.json()
    assert data["city"]["name"] == "Beograd"
    assert data["loading"] is False
    assert data["error"] is None
    assert data["current"]["temp"] == 10.4
    assert data["daily"][0]["icon"] == "☁️"
    assert data["temperature_range"] == [3.1, 4.0]
    assert data["alerts"] == []
    assert data["alerts_empty_message"] == "Nema posebnih upozorenja."
    assert data["air_quality_display"]["pm10"] != "—"


def test_select_city(api, store):
    response = api.post("/location/city", json={"name": "Subotica"})
    assert response.status_code == 200
    assert response.json()["city"]["name"] == "Subotica"
    assert store.get_city().name == "Subotica"
    data = api.get("/forecast", params={"wait": True}).json()
    assert data["city"]["name"] == "Subotica"
    assert data["current"] is not None


def test_select_unknown_city(api):
    response = api.post("/location/city", json={"name": "Nowhere"})
    assert response.status_code == 404
    assert response.json()["detail"] == "City not found: Nowhere"


def test_geolocate_success(api, store):
    response = api.post(
        "/location/geolocate", json={"latitude": 43.9, "longitude": 20.35}
    )
    assert response.status_code == 200
    assert response.json()["city"]["name"] == "Moja lokacija • Čačak"
    assert store.get_geo_status() == "granted"


def test_geolocate_denied(api, store):
    api.put("/lang", json={"lang": "en"})
    response = api.post("/location/geolocate", json={"error_code": 1})
    assert response.status_code == 200
    assert response.json() == {
        "city": None,
        "error_kind": "denied",
        "error": "Location permission denied.",
    }
    assert store.get_geo_status() == "denied"
    assert api.get("/forecast").json()["geo_error"] == "Location permission denied."


def test_geolocate_insecure_context(api):
    response = api.post(
        "/location/geolocate",
        json={"latitude": 43.9, "longitude": 20.35, "is_secure_context": False},
    )
    assert response.json()["error_kind"] == "insecure_context"


def test_interactive_map_and_click(api):
    data = api.get("/map").json()
    assert data["state"] == "interactive"
    assert data["map"]["center_lat"] == 44.7866

    response = api.post("/map/click", json={"lat": 43.16, "lon": 22.58})
    assert response.status_code == 200
    assert response.json()["city"]["name"] == "Custom • Pirot"
    assert api.get("/map").json()["map"]["center_lat"] == 43.16


def test_static_map_fallback(offline_map_api):
    data = offline_map_api.get("/map").json()
    assert data["state"] == "static_fallback"
    assert data["map"]["tile_url"] == "https://tile.openstreetmap.org/7/71/46.png"
    assert data["map"]["link_url"].endswith("#map=7/44.7866/20.4489")

    response = offline_map_api.post("/map/click", json={"lat": 43.16, "lon": 22.58})
    assert response.status_code == 409


def test_lang_round_trip(api, store):
    assert api.get("/lang").json() == {"lang": "sr"}
    assert api.put("/lang", json={"lang": "en"}).json() == {"lang": "en"}
    assert store.get_lang() == "en"


def test_health(monkeypatch):
    client = TestClient(app)

    async def fake_available():
        return ServiceStatus.available

    async def fake_not_available():
        return ServiceStatus.not_available

    def fake_is_redis_available():
        return ServiceStatus.available

    monkeypatch.setattr("srbweather.main.is_forecast_api_available", fake_available)
    monkeypatch.setattr(
        "srbweather.main.is_air_quality_api_available", fake_not_available
    )
    monkeypatch.setattr("srbweather.main.is_redis_available", fake_is_redis_available)

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "dependencies": {
            "forecast_api": "available",
            "air_quality_api": "not_available",
            "redis": "available",
        },
    }


def test_metrics(api):
    api.get("/forecast", params={"wait": True})
    response = api.get("/metrics")
    assert response.status_code == 200
    assert "forecast_cycles_total" in response.text
    assert "http_requests_total" in response.text


def test_nearest_near_antipode():
    client = TestClient(app)
    response = client.get(
        "/nearest", params={"lat": -43.320899928504204, "lon": -158.10420074482803}
    )
    assert response.status_code == 200
    assert response.json()["nearest"]["name"] == "Subotica"
